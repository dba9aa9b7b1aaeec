"""Configuration for protoforge."""

from .settings import (
    DEFAULT_BUILD_TYPE,
    DEFAULT_PROTOC_TIMEOUT,
    PROTOBUF_VERSION,
    OrchestratorSettings,
    PinnedVersion,
)

__all__ = [
    "PinnedVersion",
    "PROTOBUF_VERSION",
    "OrchestratorSettings",
    "DEFAULT_BUILD_TYPE",
    "DEFAULT_PROTOC_TIMEOUT",
]
