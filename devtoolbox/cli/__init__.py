"""Command-line interface for the developer toolbox."""
