"""HTTP middleware: timeout and request ID.

Applied in imgcache.main; order matters (last added = outermost).
"""

from imgcache.middleware.request_id import RequestIDMiddleware
from imgcache.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RequestIDMiddleware",
    "TimeoutMiddleware",
]
