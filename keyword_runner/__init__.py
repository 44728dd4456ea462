"""Keyword-driven test script runner."""
