"""Unit tests.

Single modules in isolation: error types, cancellation, hashing, config,
logging helpers, CLI helpers and hypothesis properties of the store. Files
are only touched under ``tmp_path``.
"""
