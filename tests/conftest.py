"""Shared pytest fixtures for the automater test suite.

Provides reusable fixtures for:
- A generated Next.js project tree (what create-cloudflare leaves behind)
- A recorder that stands in for the generator and package-manager children
- Mock asyncio subprocess objects, including a long-running dev server
"""

from __future__ import annotations

import asyncio
import json
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# ---------------------------------------------------------------------------
# Generated project content
# ---------------------------------------------------------------------------

NEXT_CONFIG_TS = textwrap.dedent(
    """\
    import type { NextConfig } from "next";

    const nextConfig: NextConfig = {
      /* config options here */
    };

    export default nextConfig;

    // added by create cloudflare to enable calling `getCloudflareContext()` in `next dev`
    import { initOpenNextCloudflareForDev } from '@opennextjs/cloudflare';
    initOpenNextCloudflareForDev();
    """
)

LAYOUT_TSX = textwrap.dedent(
    """\
    import type { Metadata } from "next";
    import { Geist, Geist_Mono } from "next/font/google";
    import "./globals.css";

    const geistSans = Geist({
      variable: "--font-geist-sans",
      subsets: ["latin"],
    });

    export const metadata: Metadata = {
      title: "Create Next App",
      description: "Generated by create next app",
    };

    export default function RootLayout({
      children,
    }: Readonly<{
      children: React.ReactNode;
    }>) {
      return (
        <html lang="en">
          <body className={`${geistSans.variable} antialiased`}>
            {children}
          </body>
        </html>
      );
    }
    """
)

PAGE_TSX = textwrap.dedent(
    """\
    import Image from "next/image";
    import styles from "./page.module.css";

    export default function Home() {
      return <main className={styles.main}>Hello</main>;
    }
    """
)


def write_next_project(project_dir: Path, name: str | None = None) -> Path:
    """Lay out the files create-cloudflare generates for a Next.js app."""
    app_dir = project_dir / "src" / "app"
    app_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / "package.json").write_text(
        json.dumps(
            {
                "name": name or project_dir.name,
                "version": "0.1.0",
                "private": True,
                "scripts": {"dev": "next dev --turbopack", "build": "next build"},
                "dependencies": {"next": "15.4.6", "react": "19.1.0"},
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    (project_dir / "next.config.ts").write_text(NEXT_CONFIG_TS, encoding="utf-8")
    (project_dir / "README.md").write_text("# create-next-app\n", encoding="utf-8")
    (app_dir / "layout.tsx").write_text(LAYOUT_TSX, encoding="utf-8")
    (app_dir / "page.tsx").write_text(PAGE_TSX, encoding="utf-8")
    (app_dir / "globals.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    (app_dir / "page.module.css").write_text(".main { padding: 1rem; }\n", encoding="utf-8")
    return project_dir


@pytest.fixture
def next_project(tmp_path: Path) -> Path:
    """A freshly generated Next.js project with a ``src/`` directory."""
    return write_next_project(tmp_path / "my-app")


@pytest.fixture
def flat_next_project(tmp_path: Path) -> Path:
    """A generated project that keeps ``app/`` at the root (``--no-src-dir``)."""
    project_dir = write_next_project(tmp_path / "flat-app")
    (project_dir / "src" / "app").rename(project_dir / "app")
    (project_dir / "src").rmdir()
    return project_dir


@pytest.fixture
def layout_source() -> str:
    """The root layout create-next-app generates."""
    return LAYOUT_TSX


# ---------------------------------------------------------------------------
# Child-process recorder
# ---------------------------------------------------------------------------


@dataclass
class CommandRecorder:
    """Async stand-in for ``run_command``.

    Records every argument vector.  ``returncodes`` maps a substring of the
    joined command to the exit code to return (first match wins, default
    0).  When a create-cloudflare command succeeds the generated project
    tree is written, the way the real generator would.
    """

    returncodes: dict[str, int] = field(default_factory=dict)
    spawn_errors: tuple[str, ...] = ()
    create_project: bool = True
    calls: list[list[str]] = field(default_factory=list)
    cwds: list[Path | None] = field(default_factory=list)

    async def __call__(
        self,
        cmd: list[str],
        cwd: Any = None,
        timeout: Any = None,
    ) -> int:
        self.calls.append(list(cmd))
        self.cwds.append(Path(cwd) if cwd else None)
        joined = " ".join(cmd)

        if any(marker in joined for marker in self.spawn_errors):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        code = 0
        for marker, value in self.returncodes.items():
            if marker in joined:
                code = value
                break

        if code == 0 and self.create_project and "create-cloudflare" in joined:
            package_index = next(i for i, arg in enumerate(cmd) if "create-cloudflare" in arg)
            project_name = cmd[package_index + 1]
            write_next_project(Path(cwd or ".") / project_name)

        return code

    def matching(self, marker: str) -> list[list[str]]:
        return [call for call in self.calls if marker in " ".join(call)]

    @property
    def generator_calls(self) -> list[list[str]]:
        return self.matching("create-cloudflare")

    @property
    def install_calls(self) -> list[list[str]]:
        return [call for call in self.calls if "create-cloudflare" not in " ".join(call)]


@pytest.fixture
def fake_commands():
    """Patch the generator and installer process runners with a recorder."""
    recorder = CommandRecorder()
    with patch("automater.scaffolder.generator.run_command", new=recorder), patch(
        "automater.scaffolder.installer.run_command", new=recorder
    ):
        yield recorder


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess factory.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """

    def factory(returncode: int | None = 0) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.terminate = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


class FakeServerProcess:
    """Long-running child stand-in: ``wait()`` blocks until ``exit()`` is called.

    ``terminate()`` ends the process unless ``ignore_terminate`` is set,
    in which case only ``kill()`` does.
    """

    def __init__(self, ignore_terminate: bool = False) -> None:
        self.returncode: int | None = None
        self.pid = 99998
        self.ignore_terminate = ignore_terminate
        self._exited = asyncio.Event()
        self.terminate = MagicMock(side_effect=self._on_terminate)
        self.kill = MagicMock(side_effect=lambda: self.exit(-9))

    def exit(self, code: int) -> None:
        self.returncode = code
        self._exited.set()

    def _on_terminate(self) -> None:
        if not self.ignore_terminate:
            self.exit(-15)

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode


@pytest.fixture
def fake_server():
    """Factory for ``FakeServerProcess`` instances."""
    return FakeServerProcess
