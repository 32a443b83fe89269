"""HTTP API (presentation layer)."""
