"""
Test Suite
==========

Test suite matching the renderd/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: Real Unix socket tests with fake renderers
"""
