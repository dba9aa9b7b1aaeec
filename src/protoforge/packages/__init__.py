"""Package management for protoforge.

This module handles the versioned cache of the native protobuf build, host
platform profiles, and locating protoc in a built artifact tree.
"""

from .cache import BuildWorkspace, VersionedArtifactCache
from .platform_utils import Arch, PlatformDetector, PlatformProfile
from .toolchain import ToolchainLocator

__all__ = [
    "BuildWorkspace",
    "VersionedArtifactCache",
    "Arch",
    "PlatformDetector",
    "PlatformProfile",
    "ToolchainLocator",
]
