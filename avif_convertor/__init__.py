"""
AVIF Convertor: batch conversion of raster images to AVIF.

The package does not encode images itself. It discovers candidate files from a
mixed selection of files and directories, computes where each AVIF file should
be written, and drives the external `avifenc` binary over the discovered set
with a bounded pool of workers.

Subpackages:
    config:   Static constants, the user configuration file, and the per-run
              settings snapshot.
    domain:   Jobs, outcomes, run summaries, the cancellation signal, and the
              exception hierarchy.
    services: Path resolution, file discovery, the encoder invoker, the
              single-file conversion task, and the reporting sinks.
    pipeline: The worker pool, the run aggregator, and the batch pipeline that
              ties everything together.
    utils:    Formatting helpers, external command helpers, and the pre-run
              encoder check.
"""

__version__ = "1.0.0"
