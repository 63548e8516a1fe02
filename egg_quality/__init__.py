"""Egg quality monitoring: record ingestion, aggregation, reporting and chat."""
