"""Command-line interface for FSDEDUPE."""
