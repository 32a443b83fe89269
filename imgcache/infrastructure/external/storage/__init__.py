"""Storage: local filesystem and S3-compatible backends.

Factory creates backends from imgcache.core.config. Implementations are
loaded lazily inside StorageFactory so that:
- Default (local) only requires aiofiles (main dependency).
- S3 backend only loads boto3 when used; install with: pip install 'imgcache[storage]'.

Implementations implement StorageProtocol (list, upload, download, delete,
get_metadata).
"""

from imgcache.infrastructure.external.storage.factory import StorageFactory
from imgcache.infrastructure.external.storage.protocol import StorageProtocol

__all__ = [
    "StorageFactory",
    "StorageProtocol",
]
