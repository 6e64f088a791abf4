"""End-to-end tests for ``automater create`` and ``automater add``.

These tests drive the real CLI entry point through generation, feature
application and the attached dev server.  Only the child processes are
stubbed: the generator writes a create-cloudflare project tree, package
installs succeed, and the dev server is an in-memory process that answers
the readiness probe and exits shortly after.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from automater.cli import main
from automater.scaffolder.installer import package_name


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


@pytest.mark.integration
def test_create_with_biome(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)

    exit_code = main(["create", "my-app", "--template", "nextjs", "--features", "biome"])

    project = tmp_path / "my-app"
    assert exit_code == 0
    assert len(fake_commands.generator_calls) == 1
    assert "my-app" in fake_commands.generator_calls[0]
    assert any("@biomejs/biome" in call for call in fake_commands.install_calls)

    biome = json.loads(_read(project / "biome.json"))
    assert biome["linter"]["enabled"] is True
    assert biome["formatter"]["enabled"] is True
    assert "X-Frame-Options" in _read(project / "next.config.ts")


@pytest.mark.integration
def test_create_with_mui(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)

    assert main(["create", "shop-front", "--features", "mui"]) == 0

    project = tmp_path / "shop-front"
    app = project / "src" / "app"
    package = json.loads(_read(project / "package.json"))
    assert package["scripts"]["lint"] == "biome check ."
    assert "AppRouterCacheProvider" in _read(app / "layout.tsx")
    assert 'title: "Shop Front"' in _read(app / "layout.tsx")
    assert "Shop Front" in _read(app / "page.tsx")
    readme = _read(project / "README.md")
    assert "- `mui`" in readme
    assert "- `serverHardening`" in readme
    assert "poweredByHeader: false" in _read(project / "next.config.ts")


@pytest.mark.integration
def test_create_with_toolpad_dashboard(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)

    assert main(["create", "admin", "--features", "mui-toolpad", "--no-tailwind"]) == 0

    project = tmp_path / "admin"
    config = _read(project / "next.config.ts")
    assert "poweredByHeader: false" in config
    assert "ignoreBuildErrors: true" in config
    assert (project / "src" / "app" / "(dashboard)" / "customers" / "page.tsx").is_file()
    assert not (project / "src" / "app" / "globals.css").exists()
    assert "--no-tailwind" in fake_commands.generator_calls[0]


@pytest.mark.integration
def test_conflicting_features_create_nothing(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)

    assert main(["create", "my-app", "--features", "mui,mui-toolpad"]) == 1
    assert fake_commands.calls == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.integration
def test_create_then_add(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)
    assert main(["create", "my-app"]) == 0

    monkeypatch.chdir(tmp_path / "my-app")
    assert main(["add", "mui"]) == 0

    assert "AppRouterCacheProvider" in _read(tmp_path / "my-app" / "src" / "app" / "layout.tsx")
    assert fake_commands.install_calls[-1][:2] == ["npm", "install"]


@pytest.mark.integration
def test_create_and_start_stays_attached(tmp_path: Path, monkeypatch, fake_commands, fake_server):
    monkeypatch.chdir(tmp_path)
    process = fake_server()
    spawn = AsyncMock(return_value=process)

    async def answer_then_exit(*args, **kwargs) -> bool:
        asyncio.get_running_loop().call_later(0.05, process.exit, 0)
        return True

    with patch("automater.devserver.asyncio.create_subprocess_exec", new=spawn), patch(
        "automater.devserver.wait_for_health", new=answer_then_exit
    ), patch("automater.pipeline.check_port_available", new=AsyncMock(return_value=True)), patch(
        "automater.devserver.webbrowser.open", return_value=True
    ) as browser:
        exit_code = main(["create", "my-app", "--start", "--open"])

    assert exit_code == 0
    assert spawn.await_args.kwargs["cwd"] == str(tmp_path / "my-app")
    browser.assert_called_once_with("http://localhost:3000")
    assert process.returncode == 0
    process.terminate.assert_not_called()


@pytest.mark.integration
def test_add_mui_after_toolpad_is_rejected(tmp_path: Path, monkeypatch, fake_commands):
    monkeypatch.chdir(tmp_path)
    assert main(["create", "admin", "--features", "mui-toolpad"]) == 0

    project = tmp_path / "admin"
    manifest = json.loads(_read(project / "package.json"))
    manifest["dependencies"].update(
        {
            package_name(spec): "*"
            for call in fake_commands.install_calls
            for spec in call[2:]
            if not spec.startswith("-")
        }
    )
    (project / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    installs_before = len(fake_commands.install_calls)

    assert main(["add", "mui", "--cwd", str(project)]) == 1
    assert len(fake_commands.install_calls) == installs_before
