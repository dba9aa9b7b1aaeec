"""protoforge - build protobuf from source once per version and generate code from its schemas."""

from .config import PROTOBUF_VERSION, OrchestratorSettings, PinnedVersion
from .errors import (
    BuildEnvironmentError,
    BuildFailure,
    CodeGenFailure,
    OrchestrationError,
    SourceTreeMissing,
    ToolchainNotFound,
)

__version__ = "0.1.0"

__all__ = [
    "PROTOBUF_VERSION",
    "PinnedVersion",
    "OrchestratorSettings",
    "OrchestrationError",
    "BuildEnvironmentError",
    "BuildFailure",
    "ToolchainNotFound",
    "SourceTreeMissing",
    "CodeGenFailure",
]
