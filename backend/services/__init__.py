"""Application services: ingest pipeline, categorizer and supporting tools."""
