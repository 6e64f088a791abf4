"""Dependency installation through the project's package manager."""

from __future__ import annotations

from pathlib import Path

from automater.config import AutomaterConfig
from automater.errors import DependencyInstallFailed
from automater.utils import format_command, print_detail, run_command


class DependencyInstaller:
    """Installs package specifiers into a generated project.

    The child process inherits stdio so the package manager's own progress
    output reaches the user.  There is no rollback: packages installed
    before a later failure stay installed.
    """

    def __init__(self, config: AutomaterConfig) -> None:
        self.config = config

    def command(self, packages: list[str], dev: bool = False) -> list[str]:
        return [*self.config.install_command(dev=dev), *packages]

    async def install(
        self,
        project_dir: str | Path,
        packages: list[str],
        dev: bool = False,
    ) -> None:
        """Install *packages* into *project_dir*.

        Raises:
            DependencyInstallFailed: On a non-zero exit or when the package
                manager cannot be started (reported with code ``-1``).
        """
        if not packages:
            return

        cmd = self.command(packages, dev=dev)
        print_detail(f"Running: {format_command(cmd)}")

        try:
            returncode = await run_command(
                cmd, cwd=project_dir, timeout=self.config.command_timeout
            )
        except OSError as exc:
            raise DependencyInstallFailed(-1, packages) from exc

        if returncode != 0:
            raise DependencyInstallFailed(returncode, packages)

    async def install_all(
        self,
        project_dir: str | Path,
        packages: list[str],
        dev_packages: list[str] | None = None,
    ) -> None:
        """Install runtime packages, then the optional dev-dependency round."""
        await self.install(project_dir, packages)
        if dev_packages:
            await self.install(project_dir, dev_packages, dev=True)


def package_name(spec: str) -> str:
    """Strip the version range from a package specifier.

    Examples::

        package_name("@toolpad/core@^0.9.0") -> "@toolpad/core"
        package_name("next-auth@beta")       -> "next-auth"
        package_name("@mui/material")        -> "@mui/material"
    """
    at = spec.rfind("@")
    return spec[:at] if at > 0 else spec
