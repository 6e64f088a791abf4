"""Feature model and the shared apply sequence.

A feature is a named post-scaffolding bundle: packages to install, then a
configuration step that patches, writes or copies files in the generated
project.  ``Feature.apply`` runs that sequence under one failure policy:

* configuration problems (missing files, failed writes, failed copies)
  are warnings, and the rest of the configuration keeps going;
* a failed install is fatal unless the feature is ``best_effort``, in
  which case the configuration step is skipped and the pipeline moves on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from automater.config import AutomaterConfig, CreateOptions
from automater.errors import AutomaterError, DependencyInstallFailed, StepResult
from automater.scaffolder.installer import DependencyInstaller
from automater.scaffolder.patcher import Patch, apply_patches, find_first, update_package_json
from automater.scaffolder.templates import TemplateRenderer
from automater.utils import console, print_step, print_success, print_warning

NEXT_CONFIG_CANDIDATES = ("next.config.ts", "next.config.mjs", "next.config.js")

# Opening of the exported config object, typed (TS) or untyped (JS).
NEXT_CONFIG_OPENING = r"const nextConfig(?:\s*:\s*NextConfig)?\s*=\s*\{"


class FeatureCategory(str, Enum):
    SECURITY = "security"
    STYLING = "styling"
    DEPLOYMENT = "deployment"
    QUALITY = "quality"


class FeatureConfig(BaseModel):
    """Static description of a feature."""

    name: str
    description: str
    category: FeatureCategory
    default_enabled: bool = Field(default=False)
    best_effort: bool = Field(
        default=False, description="Install failures warn instead of aborting"
    )
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    files: dict[str, str] = Field(
        default_factory=dict, description="Target path -> bundled template path"
    )
    package_json_updates: dict[str, dict[str, str]] = Field(default_factory=dict)
    next_config_block: str | None = Field(default=None)
    instructions: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------


@dataclass
class FeatureContext:
    """Everything an applicator needs to modify one generated project.

    ``feature_names`` lists the whole selection being applied, in order.
    """

    project_dir: Path
    config: AutomaterConfig = field(default_factory=AutomaterConfig)
    options: CreateOptions | None = None
    installer: DependencyInstaller | None = None
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    copy_template: bool = True
    feature_names: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.project_dir = Path(self.project_dir)
        if self.installer is None:
            self.installer = DependencyInstaller(self.config)
        if self.options is not None:
            self.copy_template = self.options.toolpad_template

    @property
    def project_name(self) -> str:
        if self.options is not None:
            return self.options.project_name
        return self.project_dir.resolve().name

    @property
    def source_root(self) -> Path:
        """``src/`` when the project uses a source directory, else the root."""
        src = self.project_dir / "src"
        return src if src.is_dir() else self.project_dir

    @property
    def app_dir(self) -> Path:
        return self.source_root / "app"

    def next_config_path(self) -> Path:
        """The project's Next.js config; defaults to ``next.config.ts`` when absent."""
        found = find_first(self.project_dir, NEXT_CONFIG_CANDIDATES)
        return found or self.project_dir / NEXT_CONFIG_CANDIDATES[0]


# ---------------------------------------------------------------------------
# Feature base class
# ---------------------------------------------------------------------------


class Feature:
    """Base class for feature applicators.

    Subclasses set ``config`` and override :meth:`configure`.
    """

    config: FeatureConfig

    @property
    def name(self) -> str:
        return self.config.name

    async def apply(self, ctx: FeatureContext) -> StepResult:
        """Install, configure and report one feature.

        Raises:
            DependencyInstallFailed: When installation fails and the feature
                is not best-effort.
        """
        result = StepResult(step=f"feature:{self.name}")
        print_step(f"Applying {self.name}: {self.config.description}")

        if not await self.install(ctx, result):
            result.message = "skipped configuration after failed install"
            return result

        try:
            await self.configure(ctx, result)
            if self.config.package_json_updates:
                await update_package_json(ctx.project_dir, self.config.package_json_updates)
        except AutomaterError as exc:
            if exc.fatal:
                raise
            self.warn(result, f"{exc} -- configuration left incomplete")
        except OSError as exc:
            self.warn(result, f"{exc} -- configuration left incomplete")

        if result.warnings:
            result.message = f"applied with {len(result.warnings)} warning(s)"
        else:
            result.message = "applied"
            print_success(f"{self.name} configured")
        for line in self.config.instructions:
            console.print(f"    [dim]- {line}[/dim]")
        return result

    async def install(self, ctx: FeatureContext, result: StepResult) -> bool:
        """Install runtime then dev dependencies; ``False`` means skip configure."""
        if not (self.config.dependencies or self.config.dev_dependencies):
            return True

        assert ctx.installer is not None
        try:
            await ctx.installer.install_all(
                ctx.project_dir,
                list(self.config.dependencies),
                list(self.config.dev_dependencies),
            )
        except DependencyInstallFailed as exc:
            if not self.config.best_effort:
                raise
            self.warn(result, f"{exc}, continuing without {self.name}")
            return False
        return True

    async def configure(self, ctx: FeatureContext, result: StepResult) -> None:
        """Modify the project after a successful install."""

    # -- Helpers for subclasses --------------------------------------------

    @staticmethod
    def warn(result: StepResult, message: str) -> None:
        result.warn(message)
        print_warning(message)

    async def patch_file(
        self, result: StepResult, path: Path, patches: list[Patch]
    ) -> list[int] | None:
        """Patch *path*; a failure becomes a warning and ``None`` is returned."""
        try:
            return await apply_patches(path, patches)
        except AutomaterError as exc:
            if exc.fatal:
                raise
            self.warn(result, str(exc))
            return None

    async def inject_next_config(self, ctx: FeatureContext, result: StepResult) -> bool:
        """Insert ``next_config_block`` right after the config object's opening brace."""
        block = self.config.next_config_block
        if not block:
            return False
        counts = await self.patch_file(
            result,
            ctx.next_config_path(),
            [Patch.insert_after(NEXT_CONFIG_OPENING, block)],
        )
        return bool(counts and counts[0])
