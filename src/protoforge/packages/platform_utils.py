"""Platform Detection Utilities.

This module provides the closed set of platform profiles the orchestrator
knows how to drive, plus host architecture detection.

Supported Profiles:
    - linux: protoc, full parallelism, conformance runner built
    - macos: protoc, full parallelism, conformance runner built,
      DYLD_LIBRARY_PATH extended so protoc finds its shared libraries
    - windows: protoc.exe, at most 2 build jobs, conformance runner skipped

Any other host system is driven with the linux profile.
"""

import platform
from enum import Enum
from typing import Optional

import psutil


class Arch(Enum):
    """Target CPU family written into the build descriptor."""

    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    UNKNOWN = "unknown"


class PlatformProfile(Enum):
    """Per-OS build behavior.

    Each member carries:
        toolchain_filename: protoc executable name under bin/
        max_jobs: build job cap, or None for full parallelism
        conformance_enabled: whether the conformance runner is built
        library_path_env: variable protoc needs extended with lib/, if any
    """

    LINUX = ("linux", "protoc", None, True, None)
    MACOS = ("macos", "protoc", None, True, "DYLD_LIBRARY_PATH")
    WINDOWS = ("windows", "protoc.exe", 2, False, None)

    def __init__(
        self,
        label: str,
        toolchain_filename: str,
        max_jobs: Optional[int],
        conformance_enabled: bool,
        library_path_env: Optional[str],
    ):
        self.label = label
        self.toolchain_filename = toolchain_filename
        self.max_jobs = max_jobs
        self.conformance_enabled = conformance_enabled
        self.library_path_env = library_path_env

    @property
    def path_separator(self) -> str:
        """Separator for path-list environment variables on this platform."""
        return ";" if self is PlatformProfile.WINDOWS else ":"


class PlatformDetector:
    """Detects the host platform profile and architecture."""

    @staticmethod
    def detect_profile() -> PlatformProfile:
        """Detect the platform profile for the running host.

        Returns:
            PlatformProfile for Windows or macOS, otherwise LINUX
        """
        system = platform.system().lower()

        if system == "windows":
            return PlatformProfile.WINDOWS
        if system == "darwin":
            return PlatformProfile.MACOS
        return PlatformProfile.LINUX

    @staticmethod
    def detect_arch() -> Arch:
        """Detect the host CPU family.

        Returns:
            Arch.X86_64, Arch.AARCH64, or Arch.UNKNOWN for anything else
        """
        machine = platform.machine().lower()

        if machine in ("x86_64", "amd64"):
            return Arch.X86_64
        if machine in ("aarch64", "arm64"):
            return Arch.AARCH64
        return Arch.UNKNOWN

    @staticmethod
    def parallel_jobs(profile: PlatformProfile) -> int:
        """Number of build jobs to request for a profile.

        Args:
            profile: Platform profile being built for

        Returns:
            The profile's cap if it has one, otherwise the logical CPU count
        """
        if profile.max_jobs is not None:
            return profile.max_jobs
        return psutil.cpu_count(logical=True) or 1

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform.

        Returns:
            Dictionary with host details and the resolved profile settings
        """
        profile = PlatformDetector.detect_profile()
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "python_version": platform.python_version(),
            "profile": profile.label,
            "arch": PlatformDetector.detect_arch().value,
            "toolchain": profile.toolchain_filename,
            "jobs": PlatformDetector.parallel_jobs(profile),
            "conformance": profile.conformance_enabled,
        }
