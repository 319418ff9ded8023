"""Tests for the command line interface."""
from __future__ import annotations

import json
from io import BytesIO

import pytest
from click.testing import CliRunner
from PIL import Image

from wirelens.cli.commands.analyze import sidecar_path
from wirelens.cli.main import cli
from wirelens.workflow.config import get_settings


def _write_png(path, width: int = 32, height: int = 16) -> None:
    image = Image.new("RGB", (width, height), color="white")
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    path.write_bytes(buffer.getvalue())


PAYLOAD = {
    "elements": [
        {"type": "container", "bounds": {"x": 0, "y": 120, "width": 500, "height": 300}, "confidence": 0.9},
        {"type": "button", "bounds": {"x": 20, "y": 20, "width": 120, "height": 40}},
    ],
    "layout": {"grid": {"columns": 1, "rows": 2}, "confidence": 0.5},
    "confidence": 0.6,
}


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("WIRELENS_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("WIRELENS_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_sidecar_path(tmp_path) -> None:
    image = tmp_path / "home.png"
    assert sidecar_path(image) == tmp_path / "home.png.cv.json"
    assert sidecar_path(image, tmp_path / "cv") == tmp_path / "cv" / "home.json"


def test_analyze_writes_project_json(tmp_path) -> None:
    image = tmp_path / "home.png"
    _write_png(image)
    (tmp_path / "home.png.cv.json").write_text(json.dumps(PAYLOAD), encoding="utf-8")
    output = tmp_path / "result.json"

    runner = CliRunner()
    result = runner.invoke(cli, ["--log-level", "WARNING", "analyze", str(image), "--output", str(output)])

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["imageCount"] == 1
    assert len(data["elements"]) == 2
    assert "data" not in data["individualResults"][0]["originalImage"]
    assert data["individualResults"][0]["originalImage"]["name"] == "home.png"


def test_analyze_reads_cv_dir_and_reports_missing_outputs(tmp_path) -> None:
    cv_dir = tmp_path / "cv"
    cv_dir.mkdir()
    first = tmp_path / "first.png"
    second = tmp_path / "second.png"
    _write_png(first, 32)
    _write_png(second, 48)
    (cv_dir / "first.json").write_text(json.dumps(PAYLOAD), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--log-level", "ERROR", "analyze", str(first), str(second), "--cv-dir", str(cv_dir), "--concurrency", "1"],
    )

    assert result.exit_code == 0, result.output
    assert "no preprocessor output for second.png" in result.stderr
    data = json.loads(result.stdout)
    assert data["imageCount"] == 2
    failed = data["individualResults"][1]
    assert failed["confidence"] == 0.0
    assert failed["error"].startswith("PreprocessorFailure")


def test_analyze_without_output_prints_only_json_to_stdout(tmp_path) -> None:
    image = tmp_path / "home.png"
    _write_png(image)
    (tmp_path / "home.png.cv.json").write_text(json.dumps(PAYLOAD), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--log-level", "ERROR", "analyze", str(image)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["imageCount"] == 1
    assert len(data["elements"]) == 2
    assert "Merged:" in result.stderr
    assert "Merged:" not in result.stdout


def test_analyze_rejects_bad_concurrency(tmp_path) -> None:
    image = tmp_path / "home.png"
    _write_png(image)

    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", str(image), "--concurrency", "0"])

    assert result.exit_code != 0


def test_config_show(monkeypatch) -> None:
    monkeypatch.setenv("WIRELENS_MAX_CONCURRENCY", "3")

    runner = CliRunner()
    result = runner.invoke(cli, ["config", "show"])

    assert result.exit_code == 0, result.output
    assert "Max Concurrency" in result.output
    assert "3" in result.output
