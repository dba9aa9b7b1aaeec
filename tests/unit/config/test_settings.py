"""Unit tests for orchestrator settings."""

import os
import stat
import sys

import pytest

from protoforge.config import PROTOBUF_VERSION, OrchestratorSettings, PinnedVersion
from protoforge.errors import BuildEnvironmentError


class TestPinnedVersion:
    """Test cases for PinnedVersion."""

    def test_pinned_protobuf_release(self):
        """Test the pinned protobuf version and tag."""
        assert PROTOBUF_VERSION.version == "25.8"
        assert PROTOBUF_VERSION.tag == "v25.8"

    def test_from_version(self):
        """Test tag derivation from a version string."""
        assert PinnedVersion.from_version("26.1") == PinnedVersion("26.1", "v26.1")

    def test_immutable(self):
        """Test pinned versions cannot be modified."""
        with pytest.raises(AttributeError):
            PROTOBUF_VERSION.version = "1.0"

    def test_str(self):
        """Test string form is the version."""
        assert str(PROTOBUF_VERSION) == "25.8"


class TestOrchestratorSettings:
    """Test cases for OrchestratorSettings.from_environment."""

    def test_out_dir_from_environment(self, tmp_path):
        """Test OUT_DIR is read and created."""
        out_dir = tmp_path / "out"
        settings = OrchestratorSettings.from_environment(environ={"OUT_DIR": str(out_dir)})

        assert settings.out_dir == out_dir.resolve()
        assert out_dir.is_dir()
        assert settings.cmake == "cmake"
        assert settings.build_type == "Release"
        assert settings.protoc_timeout == 300
        assert settings.version == PROTOBUF_VERSION

    def test_missing_out_dir(self):
        """Test a missing OUT_DIR is an environment error."""
        with pytest.raises(BuildEnvironmentError, match="OUT_DIR not set"):
            OrchestratorSettings.from_environment(environ={})

    def test_empty_out_dir(self):
        """Test an empty OUT_DIR counts as missing."""
        with pytest.raises(BuildEnvironmentError):
            OrchestratorSettings.from_environment(environ={"OUT_DIR": ""})

    def test_explicit_out_dir_overrides_environment(self, tmp_path):
        """Test an explicit out_dir wins over OUT_DIR."""
        settings = OrchestratorSettings.from_environment(
            out_dir=tmp_path / "explicit",
            environ={"OUT_DIR": str(tmp_path / "env")},
        )
        assert settings.out_dir == (tmp_path / "explicit").resolve()
        assert not (tmp_path / "env").exists()

    def test_overrides(self, tmp_path):
        """Test optional overrides are honored."""
        settings = OrchestratorSettings.from_environment(
            environ={
                "OUT_DIR": str(tmp_path),
                "PROTOFORGE_CMAKE": "/opt/cmake/bin/cmake",
                "PROTOFORGE_BUILD_TYPE": "Debug",
                "PROTOFORGE_PROTOC_TIMEOUT": "30",
            }
        )
        assert settings.cmake == "/opt/cmake/bin/cmake"
        assert settings.build_type == "Debug"
        assert settings.protoc_timeout == 30

    def test_invalid_timeout(self, tmp_path):
        """Test a non-numeric timeout is rejected."""
        with pytest.raises(BuildEnvironmentError, match="PROTOFORGE_PROTOC_TIMEOUT"):
            OrchestratorSettings.from_environment(
                environ={"OUT_DIR": str(tmp_path), "PROTOFORGE_PROTOC_TIMEOUT": "soon"}
            )

    def test_out_dir_is_a_file(self, tmp_path):
        """Test an OUT_DIR pointing at a file is rejected."""
        target = tmp_path / "file"
        target.write_text("not a directory")
        with pytest.raises(BuildEnvironmentError):
            OrchestratorSettings.from_environment(environ={"OUT_DIR": str(target)})

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits not enforced",
    )
    def test_out_dir_not_writable(self, tmp_path):
        """Test a read-only OUT_DIR is rejected."""
        read_only = tmp_path / "ro"
        read_only.mkdir()
        read_only.chmod(stat.S_IRUSR | stat.S_IXUSR)
        try:
            with pytest.raises(BuildEnvironmentError, match="not writable"):
                OrchestratorSettings.from_environment(environ={"OUT_DIR": str(read_only)})
        finally:
            read_only.chmod(stat.S_IRWXU)

    def test_error_stage(self):
        """Test the environment error names its stage."""
        with pytest.raises(BuildEnvironmentError) as exc_info:
            OrchestratorSettings.from_environment(environ={})
        assert exc_info.value.stage == "environment"
