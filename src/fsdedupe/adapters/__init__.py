"""Adapters (outbound ports) for FSDEDUPE.

Concrete implementations that talk to the host filesystem.
"""
