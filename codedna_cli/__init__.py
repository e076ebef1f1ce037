"""CodeDNA CLI: import-graph ingestion and Project DNA summaries for JS/TS projects."""

__version__ = "0.1.0"
