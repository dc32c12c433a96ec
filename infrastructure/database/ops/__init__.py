"""Table-level operation mixins combined by SQLiteDatabaseHandler."""
