"""Native Build Executor.

This module drives CMake against the generated descriptor and installs the
result into a staging prefix.

Design:
    - Configure into <build_dir>/build, then build the 'install' target
    - Windows builds are capped at 2 jobs; unbounded parallel compilation
      exhausts system resources there
    - aarch64 builds pin abseil to the external googletest and disable its
      tests to avoid a flaky upstream test setup
    - The conformance test runner is built but never installed, so it is
      copied into <prefix>/bin when present
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..config.settings import DEFAULT_BUILD_TYPE
from ..errors import BuildEnvironmentError, BuildFailure
from ..packages.platform_utils import Arch, PlatformDetector, PlatformProfile
from .cmake_config import CXX_STANDARD

logger = logging.getLogger(__name__)

CONFORMANCE_RUNNER_BUILD_NAME = "conformance_test_runner"
CONFORMANCE_RUNNER_INSTALL_NAME = "conformance-test-runner"

# Lines of captured output kept in a BuildFailure message
_OUTPUT_TAIL_LINES = 40


class NativeBuildExecutor:
    """Runs the CMake configure/build/install cycle for protobuf."""

    def __init__(
        self,
        profile: Optional[PlatformProfile] = None,
        arch: Optional[Arch] = None,
        cmake: str = "cmake",
        build_type: str = DEFAULT_BUILD_TYPE,
        verbose: bool = False,
    ):
        """Initialize executor.

        Args:
            profile: Platform profile (defaults to the host's)
            arch: Target CPU family (defaults to the host's)
            cmake: CMake executable
            build_type: CMAKE_BUILD_TYPE and --config value
            verbose: Stream CMake output instead of capturing it
        """
        self.profile = profile or PlatformDetector.detect_profile()
        self.arch = arch or PlatformDetector.detect_arch()
        self.cmake = cmake
        self.build_type = build_type
        self.verbose = verbose

    @staticmethod
    def cmake_build_dir(build_dir: Path) -> Path:
        """CMake binary directory inside the scratch tree."""
        return Path(build_dir) / "build"

    def cmake_definitions(self, install_prefix: Path) -> Dict[str, str]:
        """Cache variables passed to the configure step.

        Args:
            install_prefix: Staging prefix to install into

        Returns:
            Ordered mapping of variable name to value
        """
        definitions = {
            "CMAKE_INSTALL_PREFIX": str(install_prefix),
            "CMAKE_CXX_STANDARD": CXX_STANDARD,
            "ABSL_PROPAGATE_CXX_STD": "ON",
            "CMAKE_BUILD_TYPE": self.build_type,
        }

        if self.arch is Arch.AARCH64:
            definitions["ABSL_USE_EXTERNAL_GOOGLETEST"] = "ON"
            definitions["ABSL_BUILD_TESTING"] = "OFF"

        return definitions

    def configure_command(self, build_dir: Path, install_prefix: Path) -> List[str]:
        """Build the CMake configure command line."""
        cmd = [
            self.cmake,
            "-S",
            str(build_dir),
            "-B",
            str(self.cmake_build_dir(build_dir)),
        ]
        for name, value in self.cmake_definitions(install_prefix).items():
            cmd.append(f"-D{name}={value}")
        return cmd

    def build_command(self, build_dir: Path) -> List[str]:
        """Build the CMake build-and-install command line."""
        jobs = PlatformDetector.parallel_jobs(self.profile)
        return [
            self.cmake,
            "--build",
            str(self.cmake_build_dir(build_dir)),
            "--target",
            "install",
            "--config",
            self.build_type,
            "--parallel",
            str(jobs),
        ]

    def run_build(self, build_dir: Path, install_prefix: Path) -> None:
        """Configure, build and install protobuf into a staging prefix.

        Args:
            build_dir: Scratch directory holding CMakeLists.txt
            install_prefix: Staging prefix directory

        Raises:
            BuildEnvironmentError: If CMake cannot be launched
            BuildFailure: If configure or build exits nonzero
        """
        build_dir = Path(build_dir)
        install_prefix = Path(install_prefix)

        logger.info("Configuring protobuf in %s", self.cmake_build_dir(build_dir))
        self._run("configure", self.configure_command(build_dir, install_prefix), build_dir)

        logger.info(
            "Building protobuf with %d job(s)", PlatformDetector.parallel_jobs(self.profile)
        )
        self._run("build", self.build_command(build_dir), build_dir)

        self.harvest_conformance_runner(build_dir, install_prefix)

    def conformance_runner_path(self, build_dir: Path) -> Path:
        """Where the build leaves the conformance test runner."""
        return (
            self.cmake_build_dir(build_dir)
            / "_deps"
            / "protobuf-build"
            / CONFORMANCE_RUNNER_BUILD_NAME
        )

    def harvest_conformance_runner(self, build_dir: Path, install_prefix: Path) -> Optional[Path]:
        """Copy the conformance test runner into the prefix if it was built.

        Args:
            build_dir: Scratch directory
            install_prefix: Staging prefix directory

        Returns:
            Path of the copied runner, or None when there was nothing to copy
        """
        if not self.profile.conformance_enabled:
            return None

        runner = self.conformance_runner_path(build_dir)
        if not runner.exists():
            logger.info("No conformance test runner at %s, skipping", runner)
            return None

        bin_dir = Path(install_prefix) / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        dest = bin_dir / CONFORMANCE_RUNNER_INSTALL_NAME
        try:
            shutil.copy2(runner, dest)
        except OSError as e:
            raise BuildFailure(f"failed to copy conformance-test-runner: {e}") from e

        logger.info("Copied conformance test runner to %s", dest)
        return dest

    def _run(self, step: str, cmd: List[str], cwd: Path) -> None:
        logger.debug("Running: %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=not self.verbose,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise BuildEnvironmentError(
                f"CMake executable not found: {self.cmake}. Install CMake or set PROTOFORGE_CMAKE."
            ) from e
        except OSError as e:
            raise BuildEnvironmentError(f"failed to run {self.cmake}: {e}") from e

        if result.returncode != 0:
            message = f"CMake {step} failed with exit code {result.returncode}"
            output = _output_tail(result.stdout, result.stderr)
            if output:
                message += f"\n{output}"
            raise BuildFailure(message)


def _output_tail(stdout: Optional[str], stderr: Optional[str]) -> str:
    lines = (stdout or "").splitlines() + (stderr or "").splitlines()
    return "\n".join(lines[-_OUTPUT_TAIL_LINES:])
