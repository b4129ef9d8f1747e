"""Entrypoints (inbound adapters) for FSDEDUPE.

Expose the application to the outside world: the command-line interface.
Parse and validate inputs, call the store and the service layer, and present
results.
"""
