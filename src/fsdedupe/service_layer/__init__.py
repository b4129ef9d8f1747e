"""Service layer for FSDEDUPE.

Use cases that orchestrate filesystem work on top of the adapters: in-place
symlink deduplication of existing directory trees and path lists.
"""
