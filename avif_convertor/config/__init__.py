"""
Configuration Package for the AVIF Convertor.

This package centralizes the static configuration of the application and the
per-run settings snapshot. Keeping these values out of the conversion logic
makes it possible to adjust defaults and limits without touching the core code.

This package includes:
- Supported input extensions, the target extension and the encoder binary name.
- Logging format, concurrency cap and the reserved launch-failure exit code.
- The optional `config.user.yaml` file with user paths and conversion defaults.
- `ConversionSettings`, the immutable snapshot handed to every job of a run.
"""
