"""
Content Repository Test Suite.

This package contains:
- unit/: Unit tests (temporary directories, in-memory engine)
"""
