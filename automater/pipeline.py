"""automater command orchestration.

Implements the two commands:

``create``: validate -> pre-flight -> generate -> features -> (start)
``add``:    validate -> feature

Steps run strictly one after another.  Each produces a ``StepResult``;
the first fatal error stops the run and later steps are never invoked.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from rich.markup import escape

from automater.config import AutomaterConfig, CreateOptions
from automater.devserver import DevServerHandle, DevServerLauncher
from automater.errors import (
    AutomaterError,
    NotAProjectDirectory,
    ProjectExists,
    StepResult,
    UnsupportedTemplate,
)
from automater.features import (
    Feature,
    FeatureContext,
    applied_features,
    check_conflicts,
    get_feature,
    resolve_features,
    selected_features,
)
from automater.scaffolder.generator import run_generator
from automater.scaffolder.installer import DependencyInstaller
from automater.scaffolder.templates import TemplateRenderer
from automater.utils import (
    check_port_available,
    console,
    format_duration,
    is_empty_dir,
    load_json,
    print_banner,
    print_error,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
)

SUPPORTED_TEMPLATES = ("nextjs",)


class PipelineReport(BaseModel):
    """Everything a command run produced, in step order."""

    project_dir: Path | None = None
    steps: list[StepResult] = Field(default_factory=list)
    duration: str = ""

    @property
    def success(self) -> bool:
        return all(step.success for step in self.steps)

    @property
    def warnings(self) -> list[str]:
        return [w for step in self.steps for w in step.warnings]

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class CreatePipeline:
    """Scaffold a project, apply its features and optionally start it.

    Attributes:
        options: The user's scaffolding choices, read-only.
        config: Tool-level configuration.
        cwd: Directory the project is generated in.
        dev_server: Handle to the dev server once ``start`` ran.
    """

    def __init__(
        self,
        options: CreateOptions,
        config: AutomaterConfig | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.options = options
        self.config = config or AutomaterConfig()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.installer = DependencyInstaller(self.config)
        self.renderer = TemplateRenderer()
        self.dev_server: DevServerHandle | None = None

    @property
    def project_dir(self) -> Path:
        return self.cwd / self.options.project_name

    async def run(self) -> PipelineReport:
        started = time.monotonic()
        report = PipelineReport(project_dir=self.project_dir)

        print_banner(
            "automater create",
            {
                "Project": self.options.project_name,
                "Template": self.options.template,
                "Features": ", ".join(selected_features(self.options.features)),
                "Directory": str(self.project_dir),
            },
        )

        try:
            features = await self._step(report, "validate", self.validate)
            await self._step(report, "preflight", self.preflight)
            await self._step(report, "generate", self.generate)

            context = FeatureContext(
                project_dir=self.project_dir,
                config=self.config,
                options=self.options,
                installer=self.installer,
                renderer=self.renderer,
                feature_names=[feature.name for feature in features],
            )
            for feature in features:
                await self._feature_step(report, feature, context)

            if self.options.start:
                await self._step(report, "start", self.start)
        except AutomaterError:
            # already recorded on the report; later steps are skipped
            pass

        report.duration = format_duration(time.monotonic() - started)
        print_report(report, title="Create summary")
        return report

    # -- Steps -------------------------------------------------------------

    async def validate(self, result: StepResult) -> list[Feature]:
        """Check the template and the feature selection before any side effect."""
        if self.options.template not in SUPPORTED_TEMPLATES:
            raise UnsupportedTemplate(self.options.template)
        features = resolve_features(selected_features(self.options.features))
        result.message = ", ".join(f.name for f in features)
        return features

    async def preflight(self, result: StepResult) -> None:
        if not is_empty_dir(self.project_dir):
            raise ProjectExists(self.project_dir)
        if self.options.start and not await check_port_available(
            self.config.dev_server_port, self.config.dev_server_host
        ):
            message = f"Port {self.config.dev_server_port} is already in use"
            result.warn(message)
            print_warning(message)

    async def generate(self, result: StepResult) -> None:
        print_step(
            f"Creating {self.options.project_name} with {self.options.template} template..."
        )
        await run_generator(self.options, self.config, self.cwd)
        print_success(f"Project {self.options.project_name} created")
        result.message = str(self.project_dir)

    async def start(self, result: StepResult) -> None:
        launcher = DevServerLauncher(self.config)
        try:
            self.dev_server = await launcher.launch(
                self.project_dir, open_in_browser=self.options.open, result=result
            )
        except OSError as exc:
            message = f"Could not start the development server: {exc}"
            result.warn(message)
            print_warning(message)
            return
        result.message = self.dev_server.url

    # -- Step bookkeeping --------------------------------------------------

    async def _step(
        self,
        report: PipelineReport,
        name: str,
        method: Callable[[StepResult], Awaitable[Any]],
    ) -> Any:
        result = StepResult(step=name)
        report.steps.append(result)
        try:
            value = await method(result)
        except AutomaterError as exc:
            _record_failure(result, exc)
            raise
        return value

    async def _feature_step(
        self, report: PipelineReport, feature: Feature, context: FeatureContext
    ) -> None:
        try:
            result = await feature.apply(context)
        except AutomaterError as exc:
            result = StepResult(step=f"feature:{feature.name}")
            report.steps.append(result)
            _record_failure(result, exc)
            raise
        report.steps.append(result)


def _record_failure(result: StepResult, exc: AutomaterError) -> None:
    result.success = False
    result.kind = exc.kind
    result.message = str(exc)
    print_error(f"{result.step} failed: {exc}")


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


async def add_feature(
    name: str,
    project_dir: str | Path = ".",
    config: AutomaterConfig | None = None,
) -> PipelineReport:
    """Apply a single feature to an existing project directory.

    Validation happens before anything is installed or written, so an
    unknown feature, a non-project directory or a clash with a feature
    already in the project leaves the tree untouched.  Applied features
    are recognised by their packages in package.json.

    Raises:
        UnknownFeature: If *name* is not registered.
        NotAProjectDirectory: If *project_dir* has no package.json.
        FeatureConflict: If the project already has a conflicting feature.
        DependencyInstallFailed: If a non-best-effort install fails.
    """
    started = time.monotonic()
    project_path = Path(project_dir)
    config = config or AutomaterConfig()

    print_step(f"Adding feature: {name}")
    feature = get_feature(name)
    if not (project_path / "package.json").is_file():
        raise NotAProjectDirectory(project_path.resolve())
    for applied in _applied_features(project_path):
        if applied != name:
            check_conflicts([applied, name])

    context = FeatureContext(project_dir=project_path, config=config)
    result = await feature.apply(context)

    report = PipelineReport(project_dir=project_path, steps=[result])
    report.duration = format_duration(time.monotonic() - started)
    if result.warnings:
        print_warning(f"Feature {name} added with {len(result.warnings)} warning(s)")
    else:
        print_success(f"Feature {name} added")
    return report


def _applied_features(project_dir: Path) -> list[str]:
    try:
        manifest = load_json(project_dir / "package.json")
    except (OSError, ValueError):
        # unreadable manifests surface later as a package.json patch warning
        return []
    return applied_features(manifest)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def print_report(report: PipelineReport, title: str = "Summary") -> None:
    rows: list[tuple[str, ...]] = []
    for step in report.steps:
        if not step.success:
            status = "[red]failed[/red]"
        elif step.warnings:
            status = "[yellow]warnings[/yellow]"
        else:
            status = "[green]ok[/green]"
        rows.append((escape(step.step), status, escape(step.message)))

    console.print()
    print_summary_table(rows, columns=("Step", "Status", "Details"), title=title)

    if report.success and report.warnings:
        print_warning(f"Done in {report.duration} with {len(report.warnings)} warning(s)")
    elif report.success:
        print_success(f"Done in {report.duration}")
    else:
        print_error(f"Failed after {report.duration}")
