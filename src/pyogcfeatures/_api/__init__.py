"""OGC API - Features endpoint helpers (internal)."""
