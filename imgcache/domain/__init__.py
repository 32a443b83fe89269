"""Domain layer: entities and exceptions, independent of HTTP and storage."""
