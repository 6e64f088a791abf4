"""Text patching of generated project files.

A ``Patch`` is a (pattern, replacement) pair.  ``apply_patches`` reads a
file once, runs every patch in order over the evolving text and writes
the result back to the same path.  Patterns that do not match leave the
text untouched; callers that care can inspect the returned counts.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from automater.errors import FilePatchError
from automater.utils import load_json, save_json

Replacement = str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class Patch:
    """A single textual substitution.

    Attributes:
        pattern: Regular expression, compiled with ``re.MULTILINE``.
        replacement: Literal text or a function of the match.  Literal
            text is inserted verbatim (no backslash or group expansion).
        count: Maximum substitutions; ``0`` replaces every occurrence.
    """

    pattern: str
    replacement: Replacement
    count: int = 0

    def apply(self, text: str) -> tuple[str, int]:
        repl = self.replacement
        if isinstance(repl, str):
            literal = repl

            def repl(_match: re.Match[str]) -> str:
                return literal

        return re.subn(self.pattern, repl, text, count=self.count, flags=re.MULTILINE)

    @classmethod
    def literal(cls, old: str, new: str, count: int = 0) -> "Patch":
        """Replace an exact substring."""
        return cls(re.escape(old), new, count)

    @classmethod
    def insert_after(cls, pattern: str, text: str, count: int = 1) -> "Patch":
        """Insert *text* immediately after the first match of *pattern*."""
        return cls(pattern, lambda match: match.group(0) + text, count)

    @classmethod
    def insert_before(cls, pattern: str, text: str, count: int = 1) -> "Patch":
        return cls(pattern, lambda match: text + match.group(0), count)

    @classmethod
    def delete_lines(cls, pattern: str) -> "Patch":
        """Remove every whole line matching *pattern*."""
        return cls(rf"^[ \t]*(?:{pattern})[^\n]*\n?", "")


def patch_text(text: str, patches: list[Patch]) -> tuple[str, list[int]]:
    """Apply *patches* in order, each seeing the previous one's output."""
    counts: list[int] = []
    for patch in patches:
        text, n = patch.apply(text)
        counts.append(n)
    return text, counts


async def apply_patches(path: str | Path, patches: list[Patch]) -> list[int]:
    """Patch the file at *path* in place.

    Returns:
        The number of substitutions each patch made, in order.

    Raises:
        FilePatchError: If the file cannot be read or written.
    """
    file_path = Path(path)

    def _run() -> list[int]:
        original = file_path.read_text(encoding="utf-8")
        patched, counts = patch_text(original, patches)
        if patched != original:
            file_path.write_text(patched, encoding="utf-8")
        return counts

    try:
        return await asyncio.to_thread(_run)
    except (OSError, UnicodeDecodeError) as exc:
        raise FilePatchError(file_path, exc.__class__.__name__ + ": " + str(exc)) from exc


async def write_file(path: str | Path, content: str) -> Path:
    """Write *content* to *path*, creating parent directories."""
    file_path = Path(path)

    def _write() -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

    try:
        await asyncio.to_thread(_write)
    except OSError as exc:
        raise FilePatchError(file_path, str(exc)) from exc
    return file_path


async def remove_files(paths: list[Path]) -> list[Path]:
    """Delete the files that exist among *paths*; returns those removed."""
    removed: list[Path] = []
    for path in paths:
        if path.is_file():
            try:
                await asyncio.to_thread(path.unlink)
            except OSError as exc:
                raise FilePatchError(path, str(exc)) from exc
            removed.append(path)
    return removed


def find_first(base: Path, candidates: tuple[str, ...] | list[str]) -> Path | None:
    """Return the first existing ``base / candidate``."""
    for name in candidates:
        path = base / name
        if path.exists():
            return path
    return None


async def update_package_json(project_dir: Path, updates: dict[str, dict[str, str]]) -> Path:
    """Merge section fragments (``scripts``, ``dependencies`` ...) into package.json.

    Existing keys are overwritten by the fragment; other keys are kept.
    """
    manifest = project_dir / "package.json"
    try:
        data: dict[str, Any] = load_json(manifest)
    except (OSError, ValueError) as exc:
        raise FilePatchError(manifest, str(exc)) from exc

    for section, values in updates.items():
        current = data.get(section)
        if not isinstance(current, dict):
            current = {}
        current.update(values)
        data[section] = current

    try:
        await save_json(data, manifest)
    except OSError as exc:
        raise FilePatchError(manifest, str(exc)) from exc
    return manifest
