"""Protoc Executor.

This module runs protoc via subprocess with support for response files and
proper error handling.

Design:
    - Wraps subprocess.run for protoc invocations
    - Writes include roots to a response file (avoids command line length limits)
    - Raises CodeGenFailure carrying protoc's diagnostics on failure
    - Reports the Python modules protoc is expected to emit
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from ..config.settings import DEFAULT_PROTOC_TIMEOUT
from ..errors import CodeGenFailure

logger = logging.getLogger(__name__)


class ProtocExecutor:
    """Executes protoc commands with response file support."""

    def __init__(self, build_dir: Path, timeout: int = DEFAULT_PROTOC_TIMEOUT):
        """Initialize protoc executor.

        Args:
            build_dir: Directory for response files
            timeout: Seconds to wait for one protoc run
        """
        self.build_dir = Path(build_dir)
        self.timeout = timeout

    def compile_protos(
        self,
        protoc_path: Path,
        proto_files: List[Path],
        include_paths: List[Path],
        output_dir: Path,
        env: Optional[Mapping[str, str]] = None,
        name: str = "protos",
    ) -> List[Path]:
        """Compile a group of .proto files to Python modules.

        Args:
            protoc_path: Path to protoc
            proto_files: Schema files to compile
            include_paths: Import search roots
            output_dir: Directory for generated modules
            env: Environment for the protoc process (defaults to inherited)
            name: Group name used in messages and the response file name

        Returns:
            Paths of the generated modules

        Raises:
            CodeGenFailure: If a schema is missing, protoc cannot run, or it
                exits nonzero
        """
        for proto in proto_files:
            if not proto.exists():
                raise CodeGenFailure(f"failed to compile {name}: schema not found: {proto}")

        output_dir.mkdir(parents=True, exist_ok=True)
        response_file = self._write_response_file(
            [f"--proto_path={inc}" for inc in include_paths], name
        )

        cmd = [str(protoc_path), f"@{response_file}", f"--python_out={output_dir}"]
        cmd.extend(str(proto) for proto in proto_files)

        logger.info("Compiling %s (%d file(s))", name, len(proto_files))
        logger.debug("Running: %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=dict(env) if env is not None else None,
            )
        except subprocess.TimeoutExpired as e:
            raise CodeGenFailure(
                f"failed to compile {name}: protoc timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise CodeGenFailure(f"failed to compile {name}: could not run protoc: {e}") from e

        if result.returncode != 0:
            diagnostics = "\n".join(part for part in (result.stderr, result.stdout) if part)
            raise CodeGenFailure(
                f"failed to compile {name} (protoc exit code {result.returncode})",
                diagnostics=diagnostics.strip(),
            )

        if result.stderr:
            logger.warning("protoc: %s", result.stderr.strip())

        return [
            self.python_module_path(proto, include_paths, output_dir) for proto in proto_files
        ]

    @staticmethod
    def python_module_path(proto: Path, include_paths: List[Path], output_dir: Path) -> Path:
        """Module path protoc's Python generator emits for a schema.

        protoc names the module after the schema's path relative to the
        first include root that contains it, with '_pb2.py' replacing
        '.proto'.
        """
        relative = Path(proto.name)
        for include in include_paths:
            try:
                relative = proto.relative_to(include)
                break
            except ValueError:
                continue
        return output_dir / relative.parent / f"{relative.stem}_pb2.py"

    def _write_response_file(self, flags: List[str], name: str) -> Path:
        """Write protoc options to a response file.

        Args:
            flags: One option per line
            name: Group name for the file

        Returns:
            Path to generated response file
        """
        response_file = self.build_dir / f"protoc-{name}.rsp"
        response_file.parent.mkdir(parents=True, exist_ok=True)

        with open(response_file, "w", encoding="utf-8") as f:
            f.write("\n".join(flags))

        return response_file
