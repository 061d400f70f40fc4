"""リーダーモジュール。"""

from rescache.readers.base import AsyncResourceReader, ResourceReader
from rescache.readers.local import AsyncLocalResourceReader, LocalResourceReader
from rescache.readers.remote import AsyncRemoteResourceReader, RemoteResourceReader

__all__ = [
    "AsyncLocalResourceReader",
    "AsyncRemoteResourceReader",
    "AsyncResourceReader",
    "LocalResourceReader",
    "RemoteResourceReader",
    "ResourceReader",
]
