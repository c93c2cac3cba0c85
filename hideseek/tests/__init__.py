"""Tests for the hide-and-seek engine."""
