"""Application use cases."""

from imgcache.application.use_cases.image_optimizer import (
    ImageOptimizerService,
    is_pass_through,
)

__all__ = ["ImageOptimizerService", "is_pass_through"]
