"""
StoveSim test suite.

Tests are organized into:
- unit/: Unit tests for individual modules
- fixtures/: Test data generators
"""
