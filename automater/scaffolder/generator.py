"""External project generator invocation.

Builds the argument vector for ``create-cloudflare`` from a
``CreateOptions`` record and runs it with inherited standard I/O.  The
generator owns the whole initial project tree; automater only decides
which flags it gets.
"""

from __future__ import annotations

from pathlib import Path

from automater.config import AutomaterConfig, CreateOptions
from automater.errors import GeneratorFailed, GeneratorSpawnError
from automater.utils import format_command, print_detail, run_command


def _flag(enabled: bool, name: str, disabled: str | None = None) -> str:
    """Return ``--name`` or its negated form."""
    if enabled:
        return f"--{name}"
    return f"--{disabled}" if disabled else f"--no-{name}"


def build_generator_args(options: CreateOptions) -> list[str]:
    """Build the generator's argument vector (without the runner prefix).

    ``create-cloudflare`` flags come first; everything after ``--`` is
    forwarded to ``create-next-app``.  Each boolean option contributes
    exactly one of its enabled/disabled flags.
    """
    args = [
        options.project_name,
        f"--framework={options.framework}",
        f"--platform={options.platform}",
        _flag(options.deploy, "deploy"),
        _flag(options.git, "git"),
        # the browser is opened by automater once the dev server answers
        "--no-open",
        "--accept-defaults",
        "--",
        _flag(options.typescript, "typescript", disabled="javascript"),
        _flag(options.eslint, "eslint"),
        _flag(options.tailwind, "tailwind"),
        _flag(options.app_router, "app"),
        _flag(options.src_dir, "src-dir"),
        _flag(options.turbopack, "turbopack"),
        f"--import-alias={options.import_alias}",
    ]
    return args


def build_generator_command(options: CreateOptions, config: AutomaterConfig) -> list[str]:
    """Full command: package runner, generator package, then its arguments."""
    return [*config.runner_prefix, config.generator_package, *build_generator_args(options)]


async def run_generator(
    options: CreateOptions,
    config: AutomaterConfig,
    cwd: str | Path,
) -> Path:
    """Run the external generator in *cwd*.

    Returns:
        Path to the generated project directory.

    Raises:
        GeneratorSpawnError: If the runner executable cannot be started.
        GeneratorFailed: If the generator exits with a non-zero code.
    """
    cmd = build_generator_command(options, config)
    cmd_str = format_command(cmd)
    print_detail(f"Running: {cmd_str}")

    try:
        returncode = await run_command(cmd, cwd=cwd, timeout=config.command_timeout)
    except OSError as exc:
        raise GeneratorSpawnError(cmd_str, str(exc)) from exc

    if returncode != 0:
        raise GeneratorFailed(returncode, command=cmd_str)

    return Path(cwd) / options.project_name
