"""Query parameter validation for image requests.

Checks run in a fixed order (url, w, q, f) and stop at the first
violation; each violation has its own literal message.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from urllib.parse import urlsplit

from imgcache.application.dtos.image import ImageParams
from imgcache.domain.exceptions import ValidationException
from imgcache.shared.utils.numbers import parse_int

MIN_QUALITY = 1
MAX_QUALITY = 100


def _single(
    query: Mapping[str, Sequence[str]],
    name: str,
    label: str,
) -> str:
    """Return the one non-empty value of a required parameter."""
    values = [v for v in query.get(name, ()) if v != ""]
    if not values:
        raise ValidationException(f"{label} is required", field=name)
    if len(values) > 1:
        raise ValidationException(f"{label} cannot be an array", field=name)
    return values[0]


class ImageRequestValidator:
    """Validate url/w/q/f against the configured width and format policy."""

    def __init__(
        self,
        allowed_widths: Collection[int],
        overwrite_types: Collection[str],
    ) -> None:
        self.allowed_widths = frozenset(allowed_widths)
        self.overwrite_types = tuple(overwrite_types)

    def validate(self, query: Mapping[str, Sequence[str]]) -> ImageParams:
        """Return validated params or raise ValidationException.

        Args:
            query: Parameter name -> all values given for it.
        """
        url = _single(query, "url", '"url" parameter')
        parts = urlsplit(url)
        if parts.scheme or parts.netloc:
            raise ValidationException(
                '"url" parameter must be a relative path', field="url"
            )

        raw_width = _single(query, "w", '"w" parameter (width)')
        width = parse_int(raw_width)
        if not width or width <= 0:
            raise ValidationException(
                '"w" parameter (width) must be a number greater than 0', field="w"
            )
        if width not in self.allowed_widths:
            raise ValidationException(
                f'"w" parameter (width) of {width} is not allowed', field="w"
            )

        raw_quality = _single(query, "q", '"q" parameter (quality)')
        quality = parse_int(raw_quality)
        if quality is None or quality < MIN_QUALITY or quality > MAX_QUALITY:
            raise ValidationException(
                '"q" parameter (quality) must be a number between 1 and 100',
                field="q",
            )

        formats = [v for v in query.get("f", ()) if v != ""]
        fmt = ",".join(formats)
        requested_type: str | None = None
        if fmt:
            requested_type = f"image/{fmt}"
            if requested_type not in self.overwrite_types:
                raise ValidationException(
                    f'"f" parameter (format) of {fmt} is not allowed', field="f"
                )

        return ImageParams(
            url=url,
            width=width,
            quality=quality,
            format=fmt,
            requested_type=requested_type,
        )
