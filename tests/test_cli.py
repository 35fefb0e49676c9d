from __future__ import annotations

import json
from pathlib import Path

import pytest

from sketch_topology.cli import main


@pytest.fixture
def vectorizer_file(tmp_path: Path) -> Path:
    payload = {
        "polylines": [[[0, 0], [100, 1], [100, 80], [0, 81], [0, 0]]],
        "width": 120,
        "height": 100,
    }
    path = tmp_path / "vectorizer.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_cli_writes_result(tmp_path: Path, vectorizer_file: Path):
    output = tmp_path / "out" / "result.json"
    exit_code = main(["--input", str(vectorizer_file), "--output", str(output)])

    assert exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert len(data["lines"]) == 4
    assert len(data["rooms"]) == 1
    assert "metrics" not in data


def test_cli_includes_metrics_on_request(tmp_path: Path, vectorizer_file: Path):
    output = tmp_path / "result.json"
    assert main(["--input", str(vectorizer_file), "--output", str(output), "--metrics"]) == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["metrics"]["output"] == {"lines": 4, "rooms": 1}


def test_cli_prints_to_stdout(vectorizer_file: Path, capsys):
    assert main(["--input", str(vectorizer_file), "--log-level", "ERROR"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["rooms"]) == 1


def test_cli_uses_config_file(tmp_path: Path, vectorizer_file: Path):
    config = tmp_path / "settings.yaml"
    config.write_text("cleanup:\n  minRoomArea: 10000\n", encoding="utf-8")
    output = tmp_path / "result.json"
    assert main(["--input", str(vectorizer_file), "--output", str(output), "--config", str(config)]) == 0
    assert json.loads(output.read_text(encoding="utf-8"))["rooms"] == []


def test_cli_rejects_malformed_polyline(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"polylines": [[[0, 0], ["x", 1]]]}), encoding="utf-8")
    assert main(["--input", str(path), "--output", str(tmp_path / "r.json")]) == 1
    assert not (tmp_path / "r.json").exists()


def test_cli_reports_missing_input(tmp_path: Path):
    assert main(["--input", str(tmp_path / "nope.json")]) == 2


def test_cli_reports_missing_config(tmp_path: Path, vectorizer_file: Path):
    assert main(["--input", str(vectorizer_file), "--config", str(tmp_path / "nope.yaml")]) == 2
