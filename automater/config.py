"""automater configuration.

Two typed Pydantic v2 models:

* ``CreateOptions`` -- the user's scaffolding choices for one ``create``
  invocation.  Frozen: it is built once at the command boundary and handed
  to every step by value.
* ``AutomaterConfig`` -- tool-level knobs (package manager, generator
  package, dev-server address, timeouts) that can also come from the
  environment.
"""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PackageManager = Literal["npm", "pnpm", "yarn", "bun"]
Platform = Literal["workers", "pages"]


def parse_feature_list(value: str | None) -> list[str]:
    """Split a comma-separated feature list, trimming blanks.

    Examples::

        parse_feature_list("mui, biome,,") -> ["mui", "biome"]
        parse_feature_list(None)           -> []
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class CreateOptions(BaseModel):
    """Scaffolding choices for a single ``automater create`` run."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1)
    template: str = Field(default="nextjs")
    framework: str = Field(default="next")
    platform: Platform = Field(default="workers")

    typescript: bool = Field(default=True)
    eslint: bool = Field(default=True)
    tailwind: bool = Field(default=True)
    app_router: bool = Field(default=True)
    src_dir: bool = Field(default=True)
    turbopack: bool = Field(default=True)

    git: bool = Field(default=False)
    deploy: bool = Field(default=False)
    start: bool = Field(default=False)
    open: bool = Field(default=False, description="Open a browser once the dev server is up")

    import_alias: str = Field(default="@/*")
    features: tuple[str, ...] = Field(
        default=(), description="Extra features requested on top of the defaults"
    )
    toolpad_template: bool = Field(
        default=True, description="Copy the bundled dashboard tree for mui-toolpad"
    )

    @field_validator("project_name")
    @classmethod
    def _no_path_separators(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("project name must be a single directory name")
        return value

    @field_validator("features", mode="before")
    @classmethod
    def _split_features(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(parse_feature_list(value))
        return value


class AutomaterConfig(BaseModel):
    """Tool-level configuration shared by every command."""

    package_manager: PackageManager = Field(default="npm")
    generator_package: str = Field(default="create-cloudflare@latest")
    dev_server_host: str = Field(default="localhost")
    dev_server_port: int = Field(default=3000, ge=1, le=65535)
    ready_timeout: float = Field(
        default=60.0, gt=0, description="Seconds to wait for the dev server to answer"
    )
    ready_interval: float = Field(default=1.0, gt=0)
    command_timeout: float | None = Field(
        default=None,
        description="Timeout for generator/install children; None waits forever",
    )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def dev_server_url(self) -> str:
        return f"http://{self.dev_server_host}:{self.dev_server_port}"

    @property
    def runner_prefix(self) -> list[str]:
        """Command prefix that fetches and runs a package binary."""
        return {
            "npm": ["npx", "-y"],
            "pnpm": ["pnpm", "dlx"],
            "yarn": ["yarn", "dlx"],
            "bun": ["bunx"],
        }[self.package_manager]

    def install_command(self, dev: bool = False) -> list[str]:
        """Command prefix that adds packages to the project manifest."""
        if self.package_manager == "npm":
            return ["npm", "install", "--save-dev"] if dev else ["npm", "install"]
        dev_flag = "-d" if self.package_manager == "bun" else "-D"
        base = [self.package_manager, "add"]
        return [*base, dev_flag] if dev else base

    @property
    def dev_command(self) -> list[str]:
        if self.package_manager == "npm":
            return ["npm", "run", "dev"]
        return [self.package_manager, "dev"]

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "AutomaterConfig":
        """Build an ``AutomaterConfig`` from environment variables.

        Recognised variables (all optional):
            AUTOMATER_PACKAGE_MANAGER, AUTOMATER_GENERATOR,
            AUTOMATER_DEV_PORT, AUTOMATER_READY_TIMEOUT,
            AUTOMATER_COMMAND_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("AUTOMATER_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["AUTOMATER_PACKAGE_MANAGER"]
        if os.environ.get("AUTOMATER_GENERATOR"):
            kwargs["generator_package"] = os.environ["AUTOMATER_GENERATOR"]
        if os.environ.get("AUTOMATER_DEV_PORT"):
            kwargs["dev_server_port"] = int(os.environ["AUTOMATER_DEV_PORT"])
        if os.environ.get("AUTOMATER_READY_TIMEOUT"):
            kwargs["ready_timeout"] = float(os.environ["AUTOMATER_READY_TIMEOUT"])
        if os.environ.get("AUTOMATER_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = float(os.environ["AUTOMATER_COMMAND_TIMEOUT"])
        return cls(**kwargs)
