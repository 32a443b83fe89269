"""Presentation-layer dependency injection.

Collaborators are built once in imgcache.core.lifespan and kept on
app.state; routes depend on these providers, not on infrastructure.
Tests override app.state (or these dependencies) to inject doubles.
"""

from typing import Annotated

from fastapi import Depends, Request

from imgcache.application.use_cases.image_optimizer import ImageOptimizerService


def get_image_optimizer(request: Request) -> ImageOptimizerService:
    """Return the process-wide optimizer built at startup."""
    return request.app.state.image_optimizer


ImageOptimizerDep = Annotated[ImageOptimizerService, Depends(get_image_optimizer)]
