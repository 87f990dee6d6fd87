"""Shared test fixtures for ideakit tests."""
