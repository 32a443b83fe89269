"""On-demand image transcoding cache in front of an origin blob store."""

__version__ = "1.0.0"
