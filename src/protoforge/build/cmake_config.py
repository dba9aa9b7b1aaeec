"""CMake descriptor generation for the protobuf fetch-and-build project.

The generated CMakeLists.txt is a thin wrapper project: it pins the CPU
family, pulls protobuf at an exact tag with FetchContent and sets the
options that keep the build down to protoc, its libraries and (outside
Windows) the conformance test runner.

It also carries a workaround for Apple silicon builds under Nix. Abseil's
multi-arch handling conflicts with the explicit --target flags Nix puts in
CMAKE_C_FLAGS, so when both the arm64 OSX architecture and a --target flag
are present, APPLE is forced off for the FetchContent_MakeAvailable call
only, then restored.
"""

import logging
from pathlib import Path
from typing import Optional

from ..errors import BuildEnvironmentError
from ..packages.platform_utils import Arch, PlatformDetector, PlatformProfile

logger = logging.getLogger(__name__)

PROTOBUF_REPOSITORY = "https://github.com/protocolbuffers/protobuf.git"

CXX_STANDARD = "14"

DESCRIPTOR_FILENAME = "CMakeLists.txt"

_DESCRIPTOR_TEMPLATE = """\
cmake_minimum_required(VERSION 3.14)

# Set processor type BEFORE project() so CMake detection works correctly
set(CMAKE_SYSTEM_PROCESSOR {system_processor})

project(protobuf-fetcher C CXX)

include(FetchContent)

FetchContent_Declare(
  protobuf
  GIT_REPOSITORY {repository}
  GIT_TAG {tag}
  GIT_SHALLOW TRUE
)

set(CMAKE_CXX_STANDARD {cxx_standard})
set(CMAKE_CXX_STANDARD_REQUIRED ON)
set(ABSL_PROPAGATE_CXX_STD ON)
set(ABSL_USE_EXTERNAL_GOOGLETEST ON)
set(ABSL_BUILD_TESTING OFF)
set(ABSL_ENABLE_INSTALL ON)
set(protobuf_BUILD_CONFORMANCE {conformance})
set(protobuf_BUILD_TESTS OFF)
set(protobuf_ABSL_PROVIDER "module")

# Nix on Apple silicon passes --target in CMAKE_C_FLAGS, which abseil's
# multi-arch detection does not expect. Hide APPLE while protobuf configures.
if(APPLE AND CMAKE_OSX_ARCHITECTURES STREQUAL "arm64")
  string(FIND "${{CMAKE_C_FLAGS}}" "--target" NIX_DETECTED)
  if(NOT NIX_DETECTED EQUAL -1)
    message(STATUS "Detected Nix environment, applying abseil workaround")
    set(_SAVED_APPLE "${{APPLE}}")
    set(APPLE FALSE CACHE BOOL "" FORCE)
  endif()
endif()

FetchContent_MakeAvailable(protobuf)

# Restore APPLE flag after configuration
if(_SAVED_APPLE)
  set(APPLE "${{_SAVED_APPLE}}" CACHE BOOL "" FORCE)
endif()
"""


def conformance_flag(profile: PlatformProfile) -> str:
    """CMake value for protobuf_BUILD_CONFORMANCE on a platform.

    Args:
        profile: Platform profile being built for

    Returns:
        "ON" where the conformance runner builds, "OFF" on Windows
    """
    return "ON" if profile.conformance_enabled else "OFF"


class BuildConfigGenerator:
    """Renders and writes the CMake descriptor."""

    def __init__(
        self,
        profile: Optional[PlatformProfile] = None,
        arch: Optional[Arch] = None,
    ):
        """Initialize generator.

        Args:
            profile: Platform profile (defaults to the host's)
            arch: Target CPU family (defaults to the host's)
        """
        self.profile = profile or PlatformDetector.detect_profile()
        self.arch = arch or PlatformDetector.detect_arch()

    def render_descriptor(self, version_tag: str) -> str:
        """Render the CMakeLists.txt text for a protobuf tag.

        Args:
            version_tag: Git tag to fetch (e.g., 'v25.8')

        Returns:
            Descriptor text
        """
        return _DESCRIPTOR_TEMPLATE.format(
            system_processor=self.arch.value,
            repository=PROTOBUF_REPOSITORY,
            tag=version_tag,
            cxx_standard=CXX_STANDARD,
            conformance=conformance_flag(self.profile),
        )

    def write_descriptor(self, build_dir: Path, version_tag: str) -> Path:
        """Write CMakeLists.txt into the scratch build directory.

        The file is rewritten on every build attempt.

        Args:
            build_dir: Scratch build directory
            version_tag: Git tag to fetch

        Returns:
            Path to the written descriptor

        Raises:
            BuildEnvironmentError: If the file cannot be written
        """
        descriptor = Path(build_dir) / DESCRIPTOR_FILENAME
        try:
            descriptor.write_text(self.render_descriptor(version_tag), encoding="utf-8")
        except OSError as e:
            raise BuildEnvironmentError(f"failed to write {DESCRIPTOR_FILENAME}: {e}") from e
        logger.info(
            "Wrote %s (processor=%s, conformance=%s)",
            descriptor,
            self.arch.value,
            conformance_flag(self.profile),
        )
        return descriptor
