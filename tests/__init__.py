"""
gqlcache Test Suite.

This package contains:
- unit/: Unit tests for the engine and the CLI (no external services)
"""
