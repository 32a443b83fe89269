"""Infrastructure: blob stores, derivative cache, origin fetchers and codec."""
