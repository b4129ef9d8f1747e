"""Integration tests.

The local store, its tree helpers and the in-place dedupe utilities working
on a real filesystem: on-disk layout, permissions, symlink targets and
pruning.
"""
