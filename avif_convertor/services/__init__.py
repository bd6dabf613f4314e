"""
Services Package for the AVIF Convertor.

This package contains the "service layer" of the application: the pieces the
pipeline combines for each run and each file.

- **Path Resolver (`resolve_output_path`):**
  Maps an input image, the output root and the preserve root to the AVIF path
  and the directory that must exist before writing.

- **File Discovery (`discover_files`, `iter_discovered_files`):**
  Expands a selection of files and directories into unique conversion jobs.

- **Encoder Invoker (`EncoderInvoker`, `EncoderTask`):**
  Builds the `avifenc` command line and runs it as a cancellable subprocess on
  an augmented search path.

- **Conversion Task (`ConversionTask`):**
  Drives one file through skip check, directory creation, encoding,
  cancellation and result classification.

- **Logging Service (`ReportSink`, `LoguruReportSink`, `ErrorLog`):**
  The reporting channels of a run and the optional diagnostics file.
"""
