from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path

import pytest

from conftest import brick, write_save

from chunk_marker import report


def run_report(*argv: str) -> tuple[int, str]:
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        code = report.main(list(argv))
    return code, buf.getvalue()


def test_help_does_not_crash():
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf), contextlib.redirect_stderr(buf):
        with pytest.raises(SystemExit) as excinfo:
            report.main(["--help"])
    assert excinfo.value.code == 0


def test_report_lists_chunks_and_writes_markers(tmp_path: Path):
    save = write_save(
        tmp_path / "save.json",
        [brick((0, 0, 0)), brick((-5, 0, 0), components={"A": {}, "B": {}})],
    )
    costs = tmp_path / "colliders.json"
    costs.write_text(json.dumps({"PB_DefaultBrick": 50}), encoding="utf-8")
    markers = tmp_path / "markers.json"

    code, out = run_report(
        str(save), "--costs", str(costs), "--physics-budget", "40", "--component-budget", "off", "--markers", str(markers)
    )

    assert code == 0
    assert "(-1, 0, 0)" in out
    assert "physics-over" in out
    assert "2 object(s), 2 chunk(s), 2 over budget" in out
    assert len(json.loads(markers.read_text(encoding="utf-8"))["bricks"]) == 16


def test_report_over_filter_hides_ok_chunks(tmp_path: Path):
    save = write_save(tmp_path / "save.json", [brick((0, 0, 0))])
    code, out = run_report(str(save), "--costs", str(tmp_path / "missing.json"), "--over")
    assert code == 0
    assert "(0, 0, 0)" not in out
    assert "0 over budget" in out


def test_report_missing_save_fails(tmp_path: Path):
    code, _ = run_report(str(tmp_path / "nope.json"))
    assert code == 1
