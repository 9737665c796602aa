"""Command-line interface for bubu."""
