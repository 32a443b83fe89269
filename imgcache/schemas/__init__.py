"""API schemas (Pydantic models)."""

from imgcache.schemas.health import HealthResponse

__all__ = ["HealthResponse"]
