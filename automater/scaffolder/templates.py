"""Bundled template content for feature applicators.

Provides the TemplateRenderer class, which renders Jinja2 templates from
the ``automater/scaffolder/templates/`` directory, and copies static
template trees (the Toolpad dashboard) verbatim into a generated project.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from automater.errors import TemplateCopyError
from automater.scaffolder.patcher import write_file

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates and copies static template trees.

    ``.j2`` files are rendered with a context dictionary (project name,
    options).  Everything under ``features/`` is static and copied as-is;
    JSX is full of ``{{ }}`` so those files never go through Jinja.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["title_case"] = _title_case_filter

    # -- Rendering ---------------------------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template (path relative to the template root)."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  An existing file is
        overwritten.

        Raises:
            FilePatchError: If the file cannot be written.
        """
        content = self.render(template_path, context)
        return await write_file(output_path, content)

    # -- Static trees ------------------------------------------------------

    def static_tree(self, name: str) -> Path:
        """Root of the static template tree *name* (e.g. ``"mui-toolpad"``)."""
        return self.template_dir / "features" / name

    async def copy_tree(self, name: str, target_dir: str | Path) -> list[Path]:
        """Copy the static tree *name* into *target_dir*, merging directories.

        Files that already exist in the target are overwritten.

        Returns:
            The written file paths, sorted.

        Raises:
            TemplateCopyError: If the tree is missing or the copy fails.
        """
        source = self.static_tree(name)
        target = Path(target_dir)
        if not source.is_dir():
            raise TemplateCopyError(source, target, "template directory not found")

        try:
            await asyncio.to_thread(
                shutil.copytree, source, target, dirs_exist_ok=True
            )
        except (OSError, shutil.Error) as exc:
            raise TemplateCopyError(source, target, str(exc)) from exc

        return sorted(target / p.relative_to(source) for p in source.rglob("*") if p.is_file())


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _title_case_filter(value: str) -> str:
    """Convert ``my-cool_app`` to ``My Cool App``."""
    parts = re.split(r"[-_\s]+", value)
    return " ".join(word.capitalize() for word in parts if word)
