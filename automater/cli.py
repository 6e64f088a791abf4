"""automater command-line interface.

Usage::

    automater create my-app
    automater create my-app --features mui --start --open
    automater add mui-toolpad
    automater features
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from automater import __version__
from automater.config import AutomaterConfig, CreateOptions, parse_feature_list
from automater.errors import AutomaterError
from automater.features import DEFAULT_FEATURES, FEATURES
from automater.pipeline import CreatePipeline, add_feature
from automater.utils import console, print_error, print_summary_table, print_warning


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="automater",
        description="Scaffold modern web apps with best practices in seconds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  automater create my-app\n"
            "  automater create my-app --features mui --start --open\n"
            "  automater add biome\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--package-manager",
        choices=["npm", "pnpm", "yarn", "bun"],
        default=None,
        help="Package manager for installs and the dev server (default: npm)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # -- create --------------------------------------------------------------
    create = subparsers.add_parser("create", help="Create a new project")
    create.add_argument("project_name", metavar="project-name", help="Name of the project to create")
    create.add_argument("--template", default="nextjs", help="Project template (default: nextjs)")
    create.add_argument(
        "--features",
        default=None,
        help=f"Comma-separated list of features to add on top of {','.join(DEFAULT_FEATURES)}",
    )
    create.add_argument("--framework", default="next", help="Generator framework (default: next)")
    create.add_argument(
        "--platform",
        choices=["workers", "pages"],
        default="workers",
        help="Cloudflare deployment platform (default: workers)",
    )
    create.add_argument("--import-alias", default="@/*", help="Import alias (default: @/*)")
    for flag, dest, help_text in (
        ("--no-typescript", "typescript", "Generate JavaScript instead of TypeScript"),
        ("--no-eslint", "eslint", "Skip ESLint setup"),
        ("--no-tailwind", "tailwind", "Skip Tailwind CSS"),
        ("--no-app", "app_router", "Use the Pages Router instead of the App Router"),
        ("--no-src-dir", "src_dir", "Do not use a src/ directory"),
        ("--no-turbopack", "turbopack", "Do not enable Turbopack for next dev"),
        ("--no-toolpad-template", "toolpad_template", "Install mui-toolpad without its dashboard pages"),
    ):
        create.add_argument(flag, dest=dest, action="store_false", help=help_text)
    create.add_argument("--git", action="store_true", help="Initialise a git repository")
    create.add_argument("--deploy", action="store_true", help="Deploy to Cloudflare after creation")
    create.add_argument("--start", action="store_true", help="Start the dev server when done")
    create.add_argument("--open", action="store_true", help="Open a browser once the dev server is up")

    # -- add -----------------------------------------------------------------
    add = subparsers.add_parser("add", help="Add a feature to the project in the current directory")
    add.add_argument("feature", help=f"Feature name ({', '.join(FEATURES)})")
    add.add_argument("--cwd", default=".", help="Project directory (default: current directory)")

    # -- features ------------------------------------------------------------
    subparsers.add_parser("features", help="List available features")

    return parser


def _load_config(args: argparse.Namespace) -> AutomaterConfig:
    config = AutomaterConfig.from_env()
    if args.package_manager:
        config.package_manager = args.package_manager
    return config


def _options_from_args(args: argparse.Namespace) -> CreateOptions:
    return CreateOptions(
        project_name=args.project_name,
        template=args.template,
        framework=args.framework,
        platform=args.platform,
        typescript=args.typescript,
        eslint=args.eslint,
        tailwind=args.tailwind,
        app_router=args.app_router,
        src_dir=args.src_dir,
        turbopack=args.turbopack,
        git=args.git,
        deploy=args.deploy,
        start=args.start,
        open=args.open,
        import_alias=args.import_alias,
        features=parse_feature_list(args.features),
        toolpad_template=args.toolpad_template,
    )


async def _create(args: argparse.Namespace, config: AutomaterConfig) -> int:
    pipeline = CreatePipeline(_options_from_args(args), config)
    report = await pipeline.run()

    if report.success and pipeline.dev_server is not None:
        console.print("[dim]Press Ctrl+C to stop the development server.[/dim]")
        try:
            await pipeline.dev_server.wait()
        finally:
            await pipeline.dev_server.stop()
    return report.exit_code


async def _add(args: argparse.Namespace, config: AutomaterConfig) -> int:
    report = await add_feature(args.feature, Path(args.cwd), config)
    return report.exit_code


def _list_features() -> int:
    rows = [
        (
            feature.name,
            feature.config.category.value,
            feature.config.description,
            ", ".join(feature.config.conflicts) or "-",
            "yes" if feature.config.default_enabled else "",
        )
        for feature in FEATURES.values()
    ]
    print_summary_table(
        rows,
        columns=("Feature", "Category", "Description", "Conflicts", "Default"),
        title="Available features",
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
        if args.command == "features":
            return _list_features()
        if args.command == "add":
            return asyncio.run(_add(args, config))
        return asyncio.run(_create(args, config))
    except ValidationError as exc:
        print_error(f"Invalid options: {exc}")
        return 1
    except AutomaterError as exc:
        print_error(str(exc))
        return 1
    except KeyboardInterrupt:
        print_warning("Interrupted")
        return 130


def run() -> None:
    """Console-script wrapper that sets the process exit code."""
    sys.exit(main())


if __name__ == "__main__":
    run()
