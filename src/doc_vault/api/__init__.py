"""Transport adapters for the document storage engine."""
