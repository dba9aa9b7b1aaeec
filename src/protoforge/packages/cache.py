"""Versioned artifact cache for the native protobuf build.

Cache Structure:
    $OUT_DIR/
    ├── protobuf-{version}/          # Published artifact tree
    │   ├── bin/
    │   │   ├── protoc               # protoc.exe on Windows
    │   │   └── conformance-test-runner   # optional
    │   └── lib/
    ├── build-protobuf-{version}/    # Scratch tree, kept between runs
    │   ├── CMakeLists.txt
    │   └── build/
    │       └── _deps/
    │           ├── protobuf-src/
    │           └── protobuf-build/
    └── protobuf{random}/            # Staging, exists only during a build
        └── prefix/                  # CMAKE_INSTALL_PREFIX, renamed on success

Every path is namespaced by the pinned version, so different versions never
stomp on each other. Existence of the artifact tree is the only thing checked
on a cache hit; scratch and staging leftovers from an aborted run are never
trusted and are simply overwritten on the next attempt.
"""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Union

from ..config.settings import PinnedVersion
from ..errors import BuildEnvironmentError

logger = logging.getLogger(__name__)

# (version, scratch_dir, prefix_dir) -> None, raising on failure
Builder = Callable[[PinnedVersion, Path, Path], None]


class BuildWorkspace:
    """Owns the artifact, scratch and staging directories for one version."""

    def __init__(self, out_dir: Path, version: PinnedVersion, artifact_name: str = "protobuf"):
        """Initialize workspace.

        Args:
            out_dir: Output root shared by all versions
            version: Pinned version the directories are namespaced by
            artifact_name: Name prefix for the directories
        """
        self.out_dir = Path(out_dir)
        self.version = version
        self.artifact_name = artifact_name

    @property
    def artifact_dir(self) -> Path:
        """Persistent artifact tree for this version."""
        return self.out_dir / f"{self.artifact_name}-{self.version.version}"

    @property
    def scratch_dir(self) -> Path:
        """Persistent scratch build tree for this version."""
        return self.out_dir / f"build-{self.artifact_name}-{self.version.version}"

    def is_built(self) -> bool:
        """Check whether a published artifact tree exists."""
        return self.artifact_dir.exists()

    def ensure_scratch_dir(self) -> Path:
        """Create the scratch build directory if needed.

        Raises:
            BuildEnvironmentError: If the directory cannot be created
        """
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildEnvironmentError(f"failed to create build directory: {e}") from e
        return self.scratch_dir

    @contextmanager
    def staging(self) -> Iterator[Path]:
        """Allocate a temporary staging directory with an empty prefix/ inside.

        The staging directory is removed when the context exits, whether the
        build succeeded or not. A prefix that was published is already gone
        from staging by then.

        Yields:
            Path to the prefix directory to install into
        """
        try:
            tempdir = tempfile.TemporaryDirectory(prefix=self.artifact_name, dir=self.out_dir)
        except OSError as e:
            raise BuildEnvironmentError(f"failed to create temporary directory: {e}") from e

        with tempdir as temp_path:
            prefix_dir = Path(temp_path) / "prefix"
            try:
                prefix_dir.mkdir()
            except OSError as e:
                raise BuildEnvironmentError(f"failed to create prefix directory: {e}") from e
            yield prefix_dir

    def publish(self, prefix_dir: Path) -> Path:
        """Move a completed install prefix into the artifact tree location.

        Args:
            prefix_dir: Staging prefix produced by a successful build

        Returns:
            Path to the published artifact tree

        Raises:
            BuildEnvironmentError: If the rename fails
        """
        try:
            prefix_dir.rename(self.artifact_dir)
        except OSError as e:
            raise BuildEnvironmentError(
                f"failed to move {prefix_dir} to {self.artifact_dir}: {e}"
            ) from e
        return self.artifact_dir

    def clean(self) -> None:
        """Remove the artifact and scratch trees for this version."""
        for directory in (self.artifact_dir, self.scratch_dir):
            if directory.exists():
                logger.info("Removing %s", directory)
                shutil.rmtree(directory)


class VersionedArtifactCache:
    """Builds a pinned version at most once and publishes it atomically.

    Example usage:
        cache = VersionedArtifactCache(out_dir, builder)
        artifact_tree = cache.ensure_built(PROTOBUF_VERSION)
    """

    def __init__(self, out_dir: Path, builder: Builder, artifact_name: str = "protobuf"):
        """Initialize cache.

        Args:
            out_dir: Output root holding every version's directories
            builder: Callable that populates a prefix directory from source
            artifact_name: Name prefix for cache directories
        """
        self.out_dir = Path(out_dir)
        self.builder = builder
        self.artifact_name = artifact_name

    def workspace(self, version: Union[PinnedVersion, str]) -> BuildWorkspace:
        """Get the workspace for a version."""
        if isinstance(version, str):
            version = PinnedVersion.from_version(version)
        return BuildWorkspace(self.out_dir, version, self.artifact_name)

    def ensure_built(self, version: Union[PinnedVersion, str]) -> Path:
        """Return the artifact tree for a version, building it if absent.

        Args:
            version: Pinned version, or a bare version string

        Returns:
            Path to the artifact tree

        Raises:
            BuildEnvironmentError: If workspace directories cannot be created
            BuildFailure: If the builder fails; nothing is published
        """
        workspace = self.workspace(version)

        if workspace.is_built():
            logger.info("Using cached %s at %s", workspace.artifact_name, workspace.artifact_dir)
            return workspace.artifact_dir

        logger.info(
            "No cached %s %s, building from source", workspace.artifact_name, workspace.version
        )
        scratch_dir = workspace.ensure_scratch_dir()

        with workspace.staging() as prefix_dir:
            self.builder(workspace.version, scratch_dir, prefix_dir)
            artifact_dir = workspace.publish(prefix_dir)

        logger.info("Published %s to %s", workspace.artifact_name, artifact_dir)
        return artifact_dir
