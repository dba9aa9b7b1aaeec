"""Toolchain lookup inside a built protobuf artifact tree.

The upstream build can exit zero without installing protoc, so the located
path is always checked before anything tries to run it.
"""

import logging
from pathlib import Path
from typing import Optional

from ..errors import ToolchainNotFound
from .platform_utils import PlatformDetector, PlatformProfile

logger = logging.getLogger(__name__)


class ToolchainLocator:
    """Resolves protoc and its runtime library directory."""

    def __init__(self, profile: Optional[PlatformProfile] = None):
        """Initialize locator.

        Args:
            profile: Platform profile (defaults to the host's)
        """
        self.profile = profile or PlatformDetector.detect_profile()

    def toolchain_path(self, artifact_tree: Path) -> Path:
        """Expected protoc path, whether or not it exists."""
        return Path(artifact_tree) / "bin" / self.profile.toolchain_filename

    def library_dir(self, artifact_tree: Path) -> Path:
        """Directory holding protoc's shared runtime libraries."""
        return Path(artifact_tree) / "lib"

    def locate(self, artifact_tree: Path) -> Path:
        """Locate protoc inside an artifact tree.

        Args:
            artifact_tree: Published artifact tree

        Returns:
            Path to the protoc executable

        Raises:
            ToolchainNotFound: If protoc is not at bin/<toolchain filename>
        """
        protoc = self.toolchain_path(artifact_tree)
        if not protoc.exists():
            raise ToolchainNotFound(
                f"protoc not found at {protoc}. Build may have failed."
            )

        logger.debug("Found protoc at %s", protoc)
        return protoc
