"""SQLite persistence for the server backend."""
