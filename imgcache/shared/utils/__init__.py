"""Shared utilities (datetime, mime, numbers)."""
