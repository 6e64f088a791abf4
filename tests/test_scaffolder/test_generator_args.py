"""Tests for the create-cloudflare invocation.

Covers:
- Argument vector built from CreateOptions (defaults and negations)
- Runner prefix per package manager
- run_generator success, non-zero exit and spawn failure
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from automater.config import AutomaterConfig, CreateOptions
from automater.errors import GeneratorFailed, GeneratorSpawnError
from automater.scaffolder.generator import (
    build_generator_args,
    build_generator_command,
    run_generator,
)

pytestmark = pytest.mark.unit


class TestBuildGeneratorArgs:
    def test_defaults(self):
        args = build_generator_args(CreateOptions(project_name="my-app"))
        assert args == [
            "my-app",
            "--framework=next",
            "--platform=workers",
            "--no-deploy",
            "--no-git",
            "--no-open",
            "--accept-defaults",
            "--",
            "--typescript",
            "--eslint",
            "--tailwind",
            "--app",
            "--src-dir",
            "--turbopack",
            "--import-alias=@/*",
        ]

    def test_negated_options(self):
        options = CreateOptions(
            project_name="site",
            platform="pages",
            typescript=False,
            eslint=False,
            tailwind=False,
            app_router=False,
            src_dir=False,
            turbopack=False,
            git=True,
            deploy=True,
            import_alias="~/*",
        )
        args = build_generator_args(options)
        assert "--platform=pages" in args
        assert "--deploy" in args and "--no-deploy" not in args
        assert "--git" in args and "--no-git" not in args
        assert "--javascript" in args and "--typescript" not in args
        for flag in ("--no-eslint", "--no-tailwind", "--no-app", "--no-src-dir", "--no-turbopack"):
            assert flag in args
        assert args[-1] == "--import-alias=~/*"

    def test_each_boolean_contributes_exactly_one_flag(self):
        args = build_generator_args(CreateOptions(project_name="my-app", eslint=False))
        assert args.count("--eslint") + args.count("--no-eslint") == 1

    def test_framework_flags_follow_separator(self):
        args = build_generator_args(CreateOptions(project_name="my-app"))
        separator = args.index("--")
        assert args.index("--framework=next") < separator < args.index("--typescript")

    def test_browser_never_opened_by_generator(self):
        args = build_generator_args(CreateOptions(project_name="my-app", open=True))
        assert "--no-open" in args


class TestBuildGeneratorCommand:
    @pytest.mark.parametrize(
        ("manager", "prefix"),
        [("npm", ["npx", "-y"]), ("pnpm", ["pnpm", "dlx"]), ("bun", ["bunx"])],
    )
    def test_runner_prefix(self, manager, prefix):
        cmd = build_generator_command(
            CreateOptions(project_name="my-app"), AutomaterConfig(package_manager=manager)
        )
        assert cmd[: len(prefix)] == prefix
        assert cmd[len(prefix)] == "create-cloudflare@latest"
        assert cmd[len(prefix) + 1] == "my-app"

    def test_custom_generator_package(self):
        cmd = build_generator_command(
            CreateOptions(project_name="my-app"),
            AutomaterConfig(generator_package="create-cloudflare@2.50.0"),
        )
        assert "create-cloudflare@2.50.0" in cmd


class TestRunGenerator:
    @pytest.mark.asyncio
    async def test_success_returns_project_dir(self, tmp_path: Path, fake_commands):
        project_dir = await run_generator(
            CreateOptions(project_name="my-app"), AutomaterConfig(), tmp_path
        )
        assert project_dir == tmp_path / "my-app"
        assert (project_dir / "package.json").is_file()
        assert fake_commands.cwds == [tmp_path]

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises(self, tmp_path: Path, fake_commands):
        fake_commands.returncodes["create-cloudflare"] = 2
        with pytest.raises(GeneratorFailed) as exc_info:
            await run_generator(CreateOptions(project_name="my-app"), AutomaterConfig(), tmp_path)
        assert exc_info.value.code == 2
        assert "create-cloudflare" in exc_info.value.command
        assert not (tmp_path / "my-app").exists()

    @pytest.mark.asyncio
    async def test_spawn_failure_raises(self, tmp_path: Path):
        with patch(
            "automater.scaffolder.generator.run_command",
            new=AsyncMock(side_effect=FileNotFoundError("npx")),
        ):
            with pytest.raises(GeneratorSpawnError) as exc_info:
                await run_generator(
                    CreateOptions(project_name="my-app"), AutomaterConfig(), tmp_path
                )
        assert exc_info.value.fatal is True

    @pytest.mark.asyncio
    async def test_passes_command_timeout(self, tmp_path: Path):
        mock_run = AsyncMock(return_value=0)
        with patch("automater.scaffolder.generator.run_command", new=mock_run):
            await run_generator(
                CreateOptions(project_name="my-app"),
                AutomaterConfig(command_timeout=120),
                tmp_path,
            )
        assert mock_run.await_args.kwargs["timeout"] == 120
