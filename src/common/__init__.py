"""Shared helpers: logging and the error hierarchy."""
