"""Code generation from the upstream protobuf schemas.

Two independent passes run against the fetched protobuf source tree:

1. conformance: conformance/conformance.proto. Optional; skipped when the
   conformance/ directory does not exist in this upstream version, but a
   failure once attempted is fatal.
2. test-messages: test_messages_proto2.proto, test_messages_proto3.proto and
   unittest.proto under src/. Mandatory, and compiled with sorted map
   encoding so repeated encodings of their messages are byte-identical.

protoc is linked against shared libraries in the artifact tree's lib/ that
are not on any system search path, so on macOS DYLD_LIBRARY_PATH is
extended for the protoc process.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from ..config.settings import DEFAULT_PROTOC_TIMEOUT
from ..encoding import MapEncoding
from ..errors import SourceTreeMissing
from ..packages.platform_utils import PlatformDetector, PlatformProfile
from .compilation_executor import ProtocExecutor
from .native_build import NativeBuildExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationPass:
    """One group of schemas compiled in a single protoc run.

    schema_files are relative to include_root, which is relative to the
    upstream source tree.
    """

    name: str
    include_root: str
    schema_files: Tuple[str, ...]
    optional: bool = False
    map_encoding: MapEncoding = MapEncoding.INSERTION


CONFORMANCE_PASS = CompilationPass(
    name="conformance",
    include_root="conformance",
    schema_files=("conformance.proto",),
    optional=True,
)

TEST_MESSAGES_PASS = CompilationPass(
    name="test-messages",
    include_root="src",
    schema_files=(
        "google/protobuf/test_messages_proto2.proto",
        "google/protobuf/test_messages_proto3.proto",
        "google/protobuf/unittest.proto",
    ),
    map_encoding=MapEncoding.SORTED,
)


@dataclass(frozen=True)
class SchemaSet:
    """Ordered compilation passes."""

    passes: Tuple[CompilationPass, ...]


DEFAULT_SCHEMA_SET = SchemaSet(passes=(CONFORMANCE_PASS, TEST_MESSAGES_PASS))


@dataclass
class GeneratedModule:
    """A Python module produced from one schema."""

    schema: str
    module: Path
    map_encoding: MapEncoding


@dataclass
class PassResult:
    """Outcome of one compilation pass."""

    name: str
    skipped: bool
    modules: List[GeneratedModule] = field(default_factory=list)


@dataclass
class CodeGenResult:
    """Outcome of a full code generation run."""

    output_dir: Path
    passes: List[PassResult]

    @property
    def modules(self) -> List[GeneratedModule]:
        """Every generated module, in pass order."""
        return [module for result in self.passes for module in result.modules]


class CodeGenPipeline:
    """Runs protoc over the fixed schema set.

    Example usage:
        pipeline = CodeGenPipeline(scratch_dir, out_dir / "generated")
        result = pipeline.generate(protoc, artifact_tree)
    """

    def __init__(
        self,
        scratch_dir: Path,
        output_dir: Path,
        profile: Optional[PlatformProfile] = None,
        schema_set: SchemaSet = DEFAULT_SCHEMA_SET,
        timeout: int = DEFAULT_PROTOC_TIMEOUT,
    ):
        """Initialize pipeline.

        Args:
            scratch_dir: Scratch build directory the source was fetched into
            output_dir: Directory for generated modules (recreated each run)
            profile: Platform profile (defaults to the host's)
            schema_set: Passes to run
            timeout: Seconds to wait for each protoc run
        """
        self.scratch_dir = Path(scratch_dir)
        self.output_dir = Path(output_dir)
        self.profile = profile or PlatformDetector.detect_profile()
        self.schema_set = schema_set
        self.executor = ProtocExecutor(self.scratch_dir, timeout=timeout)

    @property
    def source_tree(self) -> Path:
        """Upstream protobuf checkout left behind by FetchContent."""
        return NativeBuildExecutor.cmake_build_dir(self.scratch_dir) / "_deps" / "protobuf-src"

    def toolchain_env(
        self, artifact_tree: Path, environ: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        """Environment for protoc processes.

        On profiles with a library path variable, the artifact tree's lib/
        is prepended to it, keeping any existing value.

        Args:
            artifact_tree: Artifact tree protoc was installed into
            environ: Base environment (defaults to os.environ)

        Returns:
            Environment mapping for subprocess
        """
        env = dict(os.environ if environ is None else environ)
        var = self.profile.library_path_env
        if var is None:
            return env

        lib_dir = str(Path(artifact_tree) / "lib")
        current = env.get(var, "")
        env[var] = f"{lib_dir}{self.profile.path_separator}{current}" if current else lib_dir
        return env

    def generate(self, toolchain: Path, artifact_tree: Path) -> CodeGenResult:
        """Compile every pass of the schema set.

        Args:
            toolchain: Path to protoc
            artifact_tree: Artifact tree holding protoc's lib/

        Returns:
            CodeGenResult listing generated modules per pass

        Raises:
            SourceTreeMissing: If the fetched source tree is absent
            CodeGenFailure: If any attempted pass fails
        """
        source_tree = self.source_tree
        if not source_tree.exists():
            raise SourceTreeMissing(
                f"Protobuf source not found at {source_tree}. CMake FetchContent may have failed."
            )

        env = self.toolchain_env(artifact_tree)
        self._prepare_output_dir()

        results = [
            self._run_pass(compilation, Path(toolchain), source_tree, env)
            for compilation in self.schema_set.passes
        ]
        return CodeGenResult(output_dir=self.output_dir, passes=results)

    def _run_pass(
        self,
        compilation: CompilationPass,
        toolchain: Path,
        source_tree: Path,
        env: Mapping[str, str],
    ) -> PassResult:
        include_root = source_tree / compilation.include_root
        if compilation.optional and not include_root.exists():
            logger.info(
                "Skipping %s schemas: %s not present in this protobuf version",
                compilation.name,
                include_root,
            )
            return PassResult(name=compilation.name, skipped=True)

        proto_files = [include_root / schema for schema in compilation.schema_files]
        module_paths = self.executor.compile_protos(
            toolchain,
            proto_files,
            [include_root],
            self.output_dir,
            env=env,
            name=compilation.name,
        )

        modules = [
            GeneratedModule(schema=schema, module=path, map_encoding=compilation.map_encoding)
            for schema, path in zip(compilation.schema_files, module_paths)
        ]
        return PassResult(name=compilation.name, skipped=False, modules=modules)

    def _prepare_output_dir(self) -> None:
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True)
        (self.output_dir / "__init__.py").touch()
