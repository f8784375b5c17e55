"""Command-line interface for the DSX extractor."""
