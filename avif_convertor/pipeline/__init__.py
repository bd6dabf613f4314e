"""
This package contains the batch pipeline of the AVIF Convertor.

A run is orchestrated in three layers:

- **Batch pipeline (`BatchConversionPipeline`):** verifies the encoder,
  discovers the files of a selection, and drives the run to its summary.
- **Worker pool (`WorkerPool`, `JobCursor`):** a bounded set of workers that
  claim jobs exactly once and stop cooperatively on cancellation.
- **Aggregator (`RunAggregator`):** counts job outcomes into the `RunSummary`.
"""
