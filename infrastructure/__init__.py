"""Persistence and I/O adapters."""
