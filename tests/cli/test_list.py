"""Tests for the list command."""

import json
from pathlib import Path

from click.testing import CliRunner

from schemagen.cli.main import cli

runner = CliRunner()


def _schema(workdir: Path, kind: str, name: str) -> None:
    path = workdir / "schemas" / kind / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}")


class TestListCommand:
    """schemagen list."""

    def test_empty(self, workdir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(workdir), "list"])

        assert result.exit_code == 0
        assert "No schemas found" in result.output

    def test_lists_versions_in_order(self, workdir: Path) -> None:
        _schema(workdir, "plugins", "shop-1.10.json")
        _schema(workdir, "plugins", "shop-1.9.json")
        _schema(workdir, "core", "wordpress-6.0.json")

        result = runner.invoke(cli, ["--root", str(workdir), "list"])

        assert result.exit_code == 0
        assert "wordpress" in result.output
        assert "1.9, 1.10" in result.output

    def test_slug_from_decision_memory(self, workdir: Path) -> None:
        _schema(workdir, "plugins", "shop-1.0.json")
        (workdir / "data").mkdir()
        (workdir / "data" / "shop.json").write_text(json.dumps({"slug": "shopkeeper"}))

        result = runner.invoke(cli, ["--root", str(workdir), "list"])

        assert result.exit_code == 0
        assert "shopkeeper" in result.output
