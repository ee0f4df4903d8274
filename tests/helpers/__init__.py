"""Test builders shared across the suite."""
