"""rescache 公開API。"""

from rescache.builder import ResourceBuilder
from rescache.config import HttpConfig, ResourceConfig, RetryConfig
from rescache.enums import DataState, FileType, MutationOutcome
from rescache.errors import (
    CacheLockError,
    DeserializationError,
    FreshingDataError,
    ResourceError,
    ResourceIOError,
    ResourceTimeoutError,
    ResourceTransportError,
    ResourceValidationError,
    SerializationError,
    StaleInternalNoneError,
    UnsupportedFileTypeError,
)
from rescache.readers import (
    AsyncLocalResourceReader,
    AsyncRemoteResourceReader,
    AsyncResourceReader,
    LocalResourceReader,
    RemoteResourceReader,
    ResourceReader,
)
from rescache.state import ResourceState
from rescache.types import DataResult, MutationResult

__all__ = [
    "AsyncLocalResourceReader",
    "AsyncRemoteResourceReader",
    "AsyncResourceReader",
    "CacheLockError",
    "DataResult",
    "DataState",
    "DeserializationError",
    "FileType",
    "FreshingDataError",
    "HttpConfig",
    "LocalResourceReader",
    "MutationOutcome",
    "MutationResult",
    "RemoteResourceReader",
    "ResourceBuilder",
    "ResourceConfig",
    "ResourceError",
    "ResourceIOError",
    "ResourceReader",
    "ResourceState",
    "ResourceTimeoutError",
    "ResourceTransportError",
    "ResourceValidationError",
    "RetryConfig",
    "SerializationError",
    "StaleInternalNoneError",
    "UnsupportedFileTypeError",
]
