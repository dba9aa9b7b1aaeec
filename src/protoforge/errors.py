"""Error taxonomy for protoforge.

Every fatal condition raised by the orchestrator derives from
OrchestrationError and names the stage that failed, so the CLI can report
which part of the run broke without inspecting the exception type.
"""


class OrchestrationError(Exception):
    """Base class for fatal orchestration errors."""

    stage = "orchestration"


class BuildEnvironmentError(OrchestrationError):
    """Raised when a required environment variable or directory is unusable."""

    stage = "environment"


class BuildFailure(OrchestrationError):
    """Raised when the external build system reports a failure."""

    stage = "build"


class ToolchainNotFound(OrchestrationError):
    """Raised when the build succeeded but protoc is missing."""

    stage = "toolchain"


class SourceTreeMissing(OrchestrationError):
    """Raised when the fetched upstream source tree is absent."""

    stage = "source"


class CodeGenFailure(OrchestrationError):
    """Raised when protoc fails to compile a schema set.

    The diagnostic output from protoc is kept on ``diagnostics``.
    """

    stage = "codegen"

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics

    def __str__(self) -> str:
        message = super().__str__()
        if self.diagnostics:
            return f"{message}\n{self.diagnostics}"
        return message
