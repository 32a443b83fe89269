"""External collaborators: storage backends, origin fetchers, image codec."""
