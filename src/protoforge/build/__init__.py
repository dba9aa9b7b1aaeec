"""
Build system components for protoforge.

This module provides the build pipeline implementation including:
- CMake descriptor generation
- Native protobuf build via CMake
- Code generation with protoc
- Build orchestration
"""

from .cmake_config import BuildConfigGenerator, conformance_flag
from .codegen import (
    CONFORMANCE_PASS,
    DEFAULT_SCHEMA_SET,
    TEST_MESSAGES_PASS,
    CodeGenPipeline,
    CodeGenResult,
    CompilationPass,
    SchemaSet,
)
from .compilation_executor import ProtocExecutor
from .native_build import NativeBuildExecutor
from .orchestrator import BuildOrchestrator, BuildResult

__all__ = [
    "BuildConfigGenerator",
    "conformance_flag",
    "NativeBuildExecutor",
    "ProtocExecutor",
    "CodeGenPipeline",
    "CodeGenResult",
    "CompilationPass",
    "SchemaSet",
    "CONFORMANCE_PASS",
    "TEST_MESSAGES_PASS",
    "DEFAULT_SCHEMA_SET",
    "BuildOrchestrator",
    "BuildResult",
]
