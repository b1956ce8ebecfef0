"""Command-line interface (``assess``)."""
