"""Read-only query API."""
