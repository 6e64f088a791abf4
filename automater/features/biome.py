"""Biome linter and formatter setup."""

from __future__ import annotations

from typing import Any

from automater.errors import FilePatchError, StepResult
from automater.features.base import Feature, FeatureCategory, FeatureConfig, FeatureContext
from automater.utils import print_detail, save_json

BIOME_CONFIG: dict[str, Any] = {
    "$schema": "https://biomejs.dev/schemas/2.2.5/schema.json",
    "assist": {"actions": {"source": {"organizeImports": "on"}}},
    "linter": {"enabled": True},
    "formatter": {"enabled": True},
}


class Biome(Feature):
    config = FeatureConfig(
        name="biome",
        description="Biome linting and formatting",
        category=FeatureCategory.QUALITY,
        default_enabled=True,
        best_effort=True,
        dev_dependencies=["@biomejs/biome"],
        package_json_updates={
            "scripts": {
                "lint": "biome check .",
                "format": "biome format --write .",
            }
        },
        instructions=[
            "Run the lint script to check the project with Biome",
            "Run the format script to format sources in place",
        ],
    )

    async def configure(self, ctx: FeatureContext, result: StepResult) -> None:
        target = ctx.project_dir / "biome.json"
        try:
            await save_json(BIOME_CONFIG, target)
        except OSError as exc:
            raise FilePatchError(target, str(exc)) from exc
        print_detail(f"Wrote {target}")
