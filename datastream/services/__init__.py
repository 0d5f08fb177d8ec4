"""Services: ingestion, indexing, aggregation, progress and summary output."""
