"""Shared helpers: time, HTTP responses, device-local storage."""
