"""Database access: connection pool and schema."""
