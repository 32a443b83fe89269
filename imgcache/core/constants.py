"""Core constants: mime types, type groups and response literals.

Single source of truth for the content types the optimizer knows about.
"""

AVIF = "image/avif"
WEBP = "image/webp"
PNG = "image/png"
JPEG = "image/jpeg"
GIF = "image/gif"
SVG = "image/svg+xml"

# Candidates for Accept negotiation, most preferred first.
MODERN_TYPES = (AVIF, WEBP)
# Raster types that may carry more than one frame.
ANIMATABLE_TYPES = (WEBP, PNG, GIF)
# Never re-encoded.
VECTOR_TYPES = (SVG,)

DEFAULT_CONTENT_TYPE = JPEG

# Minimum max-age applied when parsing a cache-control header without an explicit floor.
DEFAULT_MIN_MAX_AGE = 60

ALLOWED_METHODS = ("OPTIONS", "GET")

# Delimiter between the fields of a stored entry name.
ENTRY_NAME_SEP = "."
