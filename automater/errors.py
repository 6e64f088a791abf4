"""Error taxonomy and step results for the scaffolding pipeline.

Fatal errors abort the pipeline and are raised; recoverable errors are
caught where they happen and recorded as warnings on a ``StepResult``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Every way a pipeline step can fail."""

    UNSUPPORTED_TEMPLATE = "unsupported_template"
    GENERATOR_FAILED = "generator_failed"
    GENERATOR_SPAWN_ERROR = "generator_spawn_error"
    DEPENDENCY_INSTALL_FAILED = "dependency_install_failed"
    UNKNOWN_FEATURE = "unknown_feature"
    FEATURE_CONFLICT = "feature_conflict"
    NOT_A_PROJECT_DIRECTORY = "not_a_project_directory"
    PROJECT_EXISTS = "project_exists"
    FILE_PATCH_FAILED = "file_patch_failed"
    TEMPLATE_COPY_FAILED = "template_copy_failed"
    BROWSER_OPEN_FAILED = "browser_open_failed"


class AutomaterError(Exception):
    """Base class for every error raised by automater."""

    kind: ErrorKind
    fatal: bool = True


class UnsupportedTemplate(AutomaterError):
    kind = ErrorKind.UNSUPPORTED_TEMPLATE

    def __init__(self, template: str) -> None:
        self.template = template
        super().__init__(f'Template "{template}" is not supported yet')


class GeneratorFailed(AutomaterError):
    """The external project generator exited non-zero."""

    kind = ErrorKind.GENERATOR_FAILED

    def __init__(self, code: int, command: str = "") -> None:
        self.code = code
        self.command = command
        super().__init__(f"Project generator exited with code {code}")


class GeneratorSpawnError(AutomaterError):
    """The external project generator could not be started at all."""

    kind = ErrorKind.GENERATOR_SPAWN_ERROR

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        super().__init__(f"Could not start project generator ({command}): {reason}")


class DependencyInstallFailed(AutomaterError):
    kind = ErrorKind.DEPENDENCY_INSTALL_FAILED

    def __init__(self, code: int, packages: list[str] | None = None) -> None:
        self.code = code
        self.packages = list(packages or [])
        names = ", ".join(self.packages) or "dependencies"
        super().__init__(f"Installing {names} failed with code {code}")


class UnknownFeature(AutomaterError):
    kind = ErrorKind.UNKNOWN_FEATURE

    def __init__(self, name: str, known: list[str] | None = None) -> None:
        self.name = name
        message = f"Unknown feature: {name}"
        if known:
            message += f" (available: {', '.join(known)})"
        super().__init__(message)


class FeatureConflict(AutomaterError):
    kind = ErrorKind.FEATURE_CONFLICT

    def __init__(self, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(f"Feature {first} conflicts with {second}; select only one")


class NotAProjectDirectory(AutomaterError):
    kind = ErrorKind.NOT_A_PROJECT_DIRECTORY

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"No package.json found in {path}. Run this command in a project directory."
        )


class ProjectExists(AutomaterError):
    kind = ErrorKind.PROJECT_EXISTS

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Target directory {path} already exists and is not empty")


class FilePatchError(AutomaterError):
    """A generated file could not be read or written back."""

    kind = ErrorKind.FILE_PATCH_FAILED
    fatal = False

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not patch {path}: {reason}")


class TemplateCopyError(AutomaterError):
    kind = ErrorKind.TEMPLATE_COPY_FAILED
    fatal = False

    def __init__(self, source: Path, target: Path, reason: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Could not copy template {source.name} into {target}: {reason}")


class BrowserOpenError(AutomaterError):
    kind = ErrorKind.BROWSER_OPEN_FAILED
    fatal = False

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        super().__init__(f"Could not open a browser at {url}" + (f": {reason}" if reason else ""))


# ---------------------------------------------------------------------------
# Step results
# ---------------------------------------------------------------------------


class StepResult(BaseModel):
    """Outcome of one pipeline step.

    ``success`` is ``False`` only for fatal failures; recoverable problems
    leave ``success`` set and are listed in ``warnings``.
    """

    step: str = Field(..., description="Step name, e.g. 'generate' or 'feature:biome'")
    success: bool = Field(default=True)
    kind: ErrorKind | None = Field(default=None, description="Set when the step failed")
    message: str = Field(default="")
    warnings: list[str] = Field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
