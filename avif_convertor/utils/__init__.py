"""
Utilities Package for the AVIF Convertor.

This package contains helper modules that provide reusable functionality not
tied to a single stage of the pipeline.

Modules:
    - format_utils.py: Human-readable sizes, size-change percentages and durations,
      plus the case-insensitive extension check.
    - process_utils.py: Runs short external commands (version checks, installers)
      and formats command lines for logs.
    - encoder_setup.py: Verifies that the encoder can run before a batch starts and
      optionally installs it with Homebrew on macOS.
"""
