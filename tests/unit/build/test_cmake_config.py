"""Unit tests for CMake descriptor generation."""

import pytest

from protoforge.build.cmake_config import (
    PROTOBUF_REPOSITORY,
    BuildConfigGenerator,
    conformance_flag,
)
from protoforge.packages.platform_utils import Arch, PlatformProfile


@pytest.mark.parametrize(
    "profile,expected",
    [
        (PlatformProfile.WINDOWS, "OFF"),
        (PlatformProfile.LINUX, "ON"),
        (PlatformProfile.MACOS, "ON"),
    ],
)
def test_conformance_flag(profile, expected):
    """Test the conformance runner is disabled only on Windows."""
    assert conformance_flag(profile) == expected


@pytest.mark.parametrize("profile", list(PlatformProfile))
def test_descriptor_conformance_setting(profile):
    """Test every profile renders exactly one conformance setting."""
    text = BuildConfigGenerator(profile, Arch.X86_64).render_descriptor("v25.8")
    expected = "OFF" if profile is PlatformProfile.WINDOWS else "ON"

    assert text.count("set(protobuf_BUILD_CONFORMANCE ") == 1
    assert f"set(protobuf_BUILD_CONFORMANCE {expected})" in text


class TestBuildConfigGenerator:
    """Test cases for BuildConfigGenerator."""

    @pytest.mark.parametrize("arch", list(Arch))
    def test_system_processor(self, arch):
        """Test the processor is declared before project()."""
        text = BuildConfigGenerator(PlatformProfile.LINUX, arch).render_descriptor("v25.8")
        processor_line = f"set(CMAKE_SYSTEM_PROCESSOR {arch.value})"

        assert processor_line in text
        assert text.index(processor_line) < text.index("project(protobuf-fetcher C CXX)")

    def test_fetch_pinned_to_tag(self):
        """Test FetchContent pins the exact tag with shallow history."""
        text = BuildConfigGenerator(PlatformProfile.LINUX, Arch.X86_64).render_descriptor("v25.8")

        assert f"GIT_REPOSITORY {PROTOBUF_REPOSITORY}" in text
        assert "GIT_TAG v25.8\n" in text
        assert "GIT_SHALLOW TRUE" in text

    def test_build_options(self):
        """Test language standard and upstream test suite settings."""
        text = BuildConfigGenerator(PlatformProfile.LINUX, Arch.X86_64).render_descriptor("v25.8")

        for line in [
            "set(CMAKE_CXX_STANDARD 14)",
            "set(CMAKE_CXX_STANDARD_REQUIRED ON)",
            "set(ABSL_PROPAGATE_CXX_STD ON)",
            "set(ABSL_USE_EXTERNAL_GOOGLETEST ON)",
            "set(ABSL_BUILD_TESTING OFF)",
            "set(ABSL_ENABLE_INSTALL ON)",
            "set(protobuf_BUILD_TESTS OFF)",
            'set(protobuf_ABSL_PROVIDER "module")',
        ]:
            assert line in text

    def test_apple_workaround_scoped_to_fetch(self):
        """Test APPLE is hidden only around FetchContent_MakeAvailable."""
        text = BuildConfigGenerator(PlatformProfile.MACOS, Arch.AARCH64).render_descriptor("v25.8")

        guard = 'if(APPLE AND CMAKE_OSX_ARCHITECTURES STREQUAL "arm64")'
        detect = 'string(FIND "${CMAKE_C_FLAGS}" "--target" NIX_DETECTED)'
        neutralize = 'set(APPLE FALSE CACHE BOOL "" FORCE)'
        fetch = "FetchContent_MakeAvailable(protobuf)"
        restore = 'set(APPLE "${_SAVED_APPLE}" CACHE BOOL "" FORCE)'

        assert text.index(guard) < text.index(detect) < text.index(neutralize)
        assert text.index(neutralize) < text.index(fetch) < text.index(restore)
        assert "if(NOT NIX_DETECTED EQUAL -1)" in text
        assert 'set(_SAVED_APPLE "${APPLE}")' in text

    def test_workaround_present_on_every_platform(self):
        """Test the workaround text does not depend on the profile.

        The conditions are evaluated by CMake, so the descriptor carries the
        same guarded block everywhere.
        """
        linux = BuildConfigGenerator(PlatformProfile.LINUX, Arch.X86_64).render_descriptor("v1")
        windows = BuildConfigGenerator(PlatformProfile.WINDOWS, Arch.X86_64).render_descriptor("v1")

        def without_conformance(text):
            return [line for line in text.splitlines() if "protobuf_BUILD_CONFORMANCE" not in line]

        assert without_conformance(linux) == without_conformance(windows)

    def test_write_descriptor(self, tmp_path):
        """Test the descriptor is written as CMakeLists.txt."""
        generator = BuildConfigGenerator(PlatformProfile.LINUX, Arch.X86_64)
        descriptor = generator.write_descriptor(tmp_path, "v25.8")

        assert descriptor == tmp_path / "CMakeLists.txt"
        assert descriptor.read_text(encoding="utf-8") == generator.render_descriptor("v25.8")

    def test_write_descriptor_overwrites(self, tmp_path):
        """Test a stale descriptor from another version is replaced."""
        generator = BuildConfigGenerator(PlatformProfile.LINUX, Arch.X86_64)
        generator.write_descriptor(tmp_path, "v1.0")
        generator.write_descriptor(tmp_path, "v2.0")

        text = (tmp_path / "CMakeLists.txt").read_text(encoding="utf-8")
        assert "GIT_TAG v2.0" in text
        assert "GIT_TAG v1.0" not in text
