"""
Board Server Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies)
- integration/: Integration tests (full app with an in-memory store)
"""
