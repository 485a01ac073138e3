"""Command-line interface for the quiz engine."""
