"""
Build orchestration for protoforge.

This module coordinates one complete run, from the cache check to the
generated Python modules:
- Versioned artifact cache (build protobuf once per pinned version)
- CMake descriptor generation and native build
- protoc lookup and validation
- Code generation from the upstream schemas
- Build metadata for the surrounding build
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.settings import OrchestratorSettings, PinnedVersion
from ..errors import BuildEnvironmentError
from ..packages.cache import BuildWorkspace, VersionedArtifactCache
from ..packages.platform_utils import Arch, PlatformDetector, PlatformProfile
from ..packages.toolchain import ToolchainLocator
from .cmake_config import BuildConfigGenerator
from .codegen import CodeGenPipeline, CodeGenResult
from .native_build import NativeBuildExecutor

logger = logging.getLogger(__name__)

METADATA_FILENAME = "protoforge-metadata.json"
GENERATED_DIRNAME = "generated"


@dataclass
class BuildResult:
    """Result of a complete orchestration run."""

    artifact_tree: Path
    protoc: Path
    codegen: CodeGenResult
    metadata_path: Path
    build_time: float


class BuildOrchestrator:
    """
    Orchestrates the protobuf build and code generation.

    Phases:
    1. Ensure the pinned protobuf version is built and cached
       (write CMakeLists.txt, run CMake, publish the install prefix)
    2. Locate protoc in the artifact tree
    3. Compile the conformance and test-message schemas
    4. Write build metadata

    Every failure propagates as an OrchestrationError naming its stage.

    Example usage:
        settings = OrchestratorSettings.from_environment()
        result = BuildOrchestrator(settings).build()
        print(f"PROTOBUF={result.artifact_tree}")
    """

    def __init__(
        self,
        settings: OrchestratorSettings,
        profile: Optional[PlatformProfile] = None,
        arch: Optional[Arch] = None,
        verbose: bool = False,
    ):
        """
        Initialize build orchestrator.

        Args:
            settings: Resolved orchestrator settings
            profile: Platform profile (defaults to the host's)
            arch: Target CPU family (defaults to the host's)
            verbose: Print phase progress and stream CMake output
        """
        self.settings = settings
        self.profile = profile or PlatformDetector.detect_profile()
        self.arch = arch or PlatformDetector.detect_arch()
        self.verbose = verbose

        self.config_generator = BuildConfigGenerator(self.profile, self.arch)
        self.executor = NativeBuildExecutor(
            self.profile,
            self.arch,
            cmake=settings.cmake,
            build_type=settings.build_type,
            verbose=verbose,
        )
        self.locator = ToolchainLocator(self.profile)
        self.cache = VersionedArtifactCache(settings.out_dir, self.build_from_source)

    @property
    def workspace(self) -> BuildWorkspace:
        """Workspace of the pinned version."""
        return self.cache.workspace(self.settings.version)

    def build(self, clean: bool = False) -> BuildResult:
        """
        Execute the complete orchestration run.

        Args:
            clean: Remove the pinned version's artifact and scratch trees first

        Returns:
            BuildResult with the artifact tree, protoc and generated modules

        Raises:
            OrchestrationError: If any phase fails
        """
        start_time = time.time()
        version = self.settings.version

        if clean:
            self.workspace.clean()
        self.remove_metadata()

        self._phase(1, f"Ensuring protobuf {version}...")
        artifact_tree = self.cache.ensure_built(version)

        self._phase(2, "Locating protoc...")
        protoc = self.locator.locate(artifact_tree)

        self._phase(3, "Generating code from schemas...")
        pipeline = CodeGenPipeline(
            self.workspace.scratch_dir,
            self.settings.out_dir / GENERATED_DIRNAME,
            profile=self.profile,
            timeout=self.settings.protoc_timeout,
        )
        codegen = pipeline.generate(protoc, artifact_tree)

        self._phase(4, "Writing build metadata...")
        metadata_path = self.write_metadata(version, artifact_tree, protoc, codegen)

        return BuildResult(
            artifact_tree=artifact_tree,
            protoc=protoc,
            codegen=codegen,
            metadata_path=metadata_path,
            build_time=time.time() - start_time,
        )

    def build_from_source(self, version: PinnedVersion, scratch_dir: Path, prefix_dir: Path) -> None:
        """Cache builder: generate the descriptor, build and check the prefix.

        protoc is checked inside the staging prefix so a build that exits
        zero without installing it is never published.
        """
        self.config_generator.write_descriptor(scratch_dir, version.tag)
        self.executor.run_build(scratch_dir, prefix_dir)
        self.locator.locate(prefix_dir)

    def remove_metadata(self) -> None:
        """Delete metadata left by an earlier run.

        The file is rewritten only after code generation succeeds, so a
        failed run leaves none instead of one listing deleted modules.

        Raises:
            BuildEnvironmentError: If the file cannot be removed
        """
        metadata_path = self.settings.out_dir / METADATA_FILENAME
        if not metadata_path.exists():
            return
        try:
            metadata_path.unlink()
        except OSError as e:
            raise BuildEnvironmentError(f"failed to remove {metadata_path}: {e}") from e

    def write_metadata(
        self,
        version: PinnedVersion,
        artifact_tree: Path,
        protoc: Path,
        codegen: CodeGenResult,
    ) -> Path:
        """Write the metadata file consumed by the surrounding build.

        Returns:
            Path to the metadata file

        Raises:
            BuildEnvironmentError: If the file cannot be written
        """
        metadata = {
            "PROTOBUF": str(artifact_tree),
            "version": version.version,
            "tag": version.tag,
            "protoc": str(protoc),
            "generated_dir": str(codegen.output_dir),
            "generated": [
                {
                    "schema": module.schema,
                    "module": str(module.module),
                    "map_encoding": module.map_encoding.value,
                }
                for module in codegen.modules
            ],
            "skipped_passes": [result.name for result in codegen.passes if result.skipped],
        }

        metadata_path = self.settings.out_dir / METADATA_FILENAME
        try:
            metadata_path.write_text(
                json.dumps(metadata, indent=2, sort_keys=True) + "\n", encoding="utf-8"
            )
        except OSError as e:
            raise BuildEnvironmentError(f"failed to write {metadata_path}: {e}") from e

        logger.info("Wrote build metadata to %s", metadata_path)
        return metadata_path

    def _phase(self, number: int, message: str) -> None:
        logger.info(message)
        if self.verbose:
            print(f"[{number}/4] {message}")
