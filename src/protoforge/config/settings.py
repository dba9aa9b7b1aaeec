"""Orchestrator settings.

The pinned upstream release is a constant. Everything else is read from the
environment, with OUT_DIR naming the output root that holds the artifact
tree, the scratch build tree and the generated sources.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..errors import BuildEnvironmentError


@dataclass(frozen=True)
class PinnedVersion:
    """A single upstream release: version string plus git tag."""

    version: str
    tag: str

    @classmethod
    def from_version(cls, version: str) -> "PinnedVersion":
        """Build a pinned version using the upstream ``v<version>`` tag scheme."""
        return cls(version=version, tag=f"v{version}")

    def __str__(self) -> str:
        return self.version


PROTOBUF_VERSION = PinnedVersion(version="25.8", tag="v25.8")

DEFAULT_BUILD_TYPE = "Release"
DEFAULT_PROTOC_TIMEOUT = 300


@dataclass
class OrchestratorSettings:
    """Resolved configuration for one orchestration run."""

    out_dir: Path
    cmake: str = "cmake"
    build_type: str = DEFAULT_BUILD_TYPE
    protoc_timeout: int = DEFAULT_PROTOC_TIMEOUT
    version: PinnedVersion = PROTOBUF_VERSION

    @classmethod
    def from_environment(
        cls,
        out_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "OrchestratorSettings":
        """Load settings from environment variables.

        Args:
            out_dir: Explicit output root. Overrides OUT_DIR when given.
            environ: Environment mapping (defaults to os.environ)

        Returns:
            OrchestratorSettings with a validated, writable output root

        Raises:
            BuildEnvironmentError: If OUT_DIR is missing or unusable, or a
                numeric setting cannot be parsed
        """
        if environ is None:
            environ = os.environ

        if out_dir is None:
            out_env = environ.get("OUT_DIR")
            if not out_env:
                raise BuildEnvironmentError("OUT_DIR not set")
            out_dir = Path(out_env)

        timeout_env = environ.get("PROTOFORGE_PROTOC_TIMEOUT")
        protoc_timeout = DEFAULT_PROTOC_TIMEOUT
        if timeout_env:
            try:
                protoc_timeout = int(timeout_env)
            except ValueError as e:
                raise BuildEnvironmentError(
                    f"PROTOFORGE_PROTOC_TIMEOUT must be an integer, got {timeout_env!r}"
                ) from e

        settings = cls(
            out_dir=Path(out_dir).resolve(),
            cmake=environ.get("PROTOFORGE_CMAKE") or "cmake",
            build_type=environ.get("PROTOFORGE_BUILD_TYPE") or DEFAULT_BUILD_TYPE,
            protoc_timeout=protoc_timeout,
        )
        settings.ensure_out_dir()
        return settings

    def ensure_out_dir(self) -> None:
        """Create the output root and check that it is writable.

        Raises:
            BuildEnvironmentError: If the directory cannot be created or written
        """
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildEnvironmentError(
                f"failed to create output directory {self.out_dir}: {e}"
            ) from e

        if not self.out_dir.is_dir():
            raise BuildEnvironmentError(f"output path is not a directory: {self.out_dir}")
        if not os.access(self.out_dir, os.W_OK):
            raise BuildEnvironmentError(f"output directory is not writable: {self.out_dir}")
