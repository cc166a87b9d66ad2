"""Command-line tools for adaptation authors."""
