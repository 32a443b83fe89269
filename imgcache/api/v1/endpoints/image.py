"""Image endpoint: GET /image?url=&w=&q=[&f=].

The optimizer returns a transport-agnostic ImageResponse; this module
only adapts it to a Starlette response. Methods other than GET (and the
CORS preflight OPTIONS) are answered with 405.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from imgcache.api.v1.dependencies import ImageOptimizerDep
from imgcache.application.dtos.image import ImageResponse
from imgcache.core.constants import ALLOWED_METHODS

router = APIRouter()

METHOD_NOT_ALLOWED_BODY = "METHOD-NOT-ALLOWED"
CACHE_STATUS_HEADER = "X-Cache"


def to_http_response(result: ImageResponse) -> Response:
    """Write an ImageResponse to a Starlette response (stream for cache hits)."""
    headers = {**result.headers, CACHE_STATUS_HEADER: result.cache_status}
    if result.stream is not None:
        return StreamingResponse(
            result.stream,
            status_code=result.status_code,
            headers=headers,
        )
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=headers,
    )


@router.get(
    "",
    response_class=Response,
    responses={
        200: {"description": "Optimized image", "content": {"image/*": {}}},
        304: {"description": "Client copy is fresh"},
        400: {"description": "Invalid query parameter", "content": {"text/plain": {}}},
        503: {"description": "Image cache storage is unavailable"},
    },
)
async def get_image(request: Request, optimizer: ImageOptimizerDep) -> Response:
    """Serve the image at url resized to w with quality q (optionally as format f)."""
    query = {name: request.query_params.getlist(name) for name in request.query_params}
    result = await optimizer.optimize(query, request.headers)
    return to_http_response(result)


@router.api_route(
    "",
    methods=["POST", "PUT", "PATCH", "DELETE", "HEAD"],
    include_in_schema=False,
)
async def method_not_allowed() -> PlainTextResponse:
    """Only GET is served."""
    return PlainTextResponse(
        METHOD_NOT_ALLOWED_BODY,
        status_code=405,
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )
