"""
This package contains the core domain models of the AVIF Convertor.

The domain layer holds the plain data that flows through a run and the rules
attached to it. It has no knowledge of subprocesses or the console.

Modules:
    exceptions.py:   Custom exception types for pre-run and per-job failures.
    models.py:       `ConversionJob`, `JobOutcome` and `RunSummary`.
    cancellation.py: `CancellationToken`, the single shared cancellation signal
                     observed by workers and by running encoder processes.
"""
