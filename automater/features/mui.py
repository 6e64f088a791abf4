"""Material UI wiring for the App Router."""

from __future__ import annotations

import json

from automater.errors import FilePatchError, StepResult
from automater.features.base import Feature, FeatureCategory, FeatureConfig, FeatureContext
from automater.scaffolder.patcher import Patch, find_first
from automater.utils import print_detail

LAYOUT_CANDIDATES = ("layout.tsx", "layout.jsx", "layout.js")
PAGE_CANDIDATES = ("page.tsx", "page.jsx", "page.js")

CACHE_PROVIDER_IMPORT = (
    "import { AppRouterCacheProvider } from '@mui/material-nextjs/v15-appRouter';\n"
)


def layout_patches(title: str) -> list[Patch]:
    """Patches for the root layout: provider import, wrapper and metadata title."""
    return [
        Patch.insert_before(r"^import ", CACHE_PROVIDER_IMPORT),
        Patch(
            r"\{children\}",
            "<AppRouterCacheProvider>{children}</AppRouterCacheProvider>",
            count=1,
        ),
        Patch(r"title:\s*[\"']Create Next App[\"']", f"title: {json.dumps(title)}", count=1),
    ]


class Mui(Feature):
    config = FeatureConfig(
        name="mui",
        description="Material UI components with Emotion SSR support",
        category=FeatureCategory.STYLING,
        dependencies=[
            "@mui/material",
            "@mui/material-nextjs",
            "@emotion/react",
            "@emotion/styled",
            "@emotion/cache",
        ],
        conflicts=["mui-toolpad"],
        instructions=[
            "Root layout wrapped in AppRouterCacheProvider",
            "Home page replaced with a Material UI starter",
        ],
    )

    async def configure(self, ctx: FeatureContext, result: StepResult) -> None:
        context = self.template_context(ctx)

        layout = find_first(ctx.app_dir, LAYOUT_CANDIDATES) or ctx.app_dir / LAYOUT_CANDIDATES[0]
        await self.patch_file(result, layout, layout_patches(context["project_title"]))

        page = find_first(ctx.app_dir, PAGE_CANDIDATES) or ctx.app_dir / PAGE_CANDIDATES[0]
        targets = {
            "mui/page.tsx.j2": page,
            "mui/README.md.j2": ctx.project_dir / "README.md",
        }
        for template, target in targets.items():
            try:
                await ctx.renderer.render_to_file(template, target, context)
            except FilePatchError as exc:
                self.warn(result, str(exc))
                continue
            print_detail(f"Wrote {target}")

    def template_context(self, ctx: FeatureContext) -> dict[str, object]:
        options = ctx.options
        features = ctx.feature_names or [self.name]
        title = ctx.renderer.env.filters["title_case"](ctx.project_name)
        return {
            "project_name": ctx.project_name,
            "project_title": title,
            "platform": options.platform if options else "workers",
            "features": features,
            "dev_command": " ".join(ctx.config.dev_command),
            "dev_server_url": ctx.config.dev_server_url,
            "deploy_command": f"{ctx.config.package_manager} run deploy",
        }
