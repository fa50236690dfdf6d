"""
Test suite for mparith

Contains:
- tests/unit/          : Unit tests for individual modules and end-to-end scenarios
"""
