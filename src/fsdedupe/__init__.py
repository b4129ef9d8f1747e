"""FSDEDUPE

A deduplicated local file store. User-facing paths ("links") are symlinks
into content-addressed data files named by their SHA-512 digest, so files
with identical bytes occupy storage exactly once.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
