"""Command-line interface for wpf-build."""
