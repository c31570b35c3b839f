import csv
import json
import sys

import pytest

from Hits_Harness.config import Config, RunConfig
from Hits_Harness.main import MainService, _apply_overrides
from hh.cli import main as hh_main


@pytest.fixture(autouse=True)
def _keep_excepthook(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)


@pytest.fixture
def graph_file(tmp_path):
    path = tmp_path / "ring.json"
    path.write_text(
        json.dumps(
            {"num_vertices": 4, "edges": [[0, 1], [1, 2], [2, 3], [3, 0], [0, 2]]}
        )
    )
    return path


def test_cli_flags_override_config(tmp_path, graph_file):
    cfg = tmp_path / "c.json"
    cfg.write_text(json.dumps({"max_iter": 9, "top_k": 2}))
    service = MainService(
        argv=[
            "--config",
            str(cfg),
            "--graph",
            str(graph_file),
            "--max-iter",
            "5",
            "--device",
            "0,1",
            "--hub-only",
        ]
    )
    args = service._parse_args()
    _apply_overrides(args)
    run_cfg = RunConfig.from_config()
    assert run_cfg.max_iter == 5
    assert run_cfg.top_k == 2
    assert run_cfg.device == (0, 1)
    assert run_cfg.hub_only is True
    assert Config.quiet is False


def test_run_writes_stats_record(tmp_path, graph_file, capsys):
    stats_path = tmp_path / "stats.json"
    errors = MainService(
        argv=[
            "--graph",
            str(graph_file),
            "--quiet",
            "--max-iter",
            "10",
            "--jsonfile",
            str(stats_path),
        ]
    ).run()
    assert errors == 0
    record = json.loads(stats_path.read_text())
    assert record["validation"] == "PASS"
    assert record["graph"] == "ring"
    printed = json.loads(capsys.readouterr().out)
    assert printed["run_id"] == record["run_id"]


def test_replay_divergence_reported(tmp_path, graph_file, capsys):
    scores = tmp_path / "scores.json"
    scores.write_text(json.dumps({"hub": [0.5] * 4, "authority": [0.5] * 4}))
    errors = MainService(
        argv=[
            "--graph",
            str(graph_file),
            "--engine",
            "replay",
            "--scores",
            str(scores),
            "--max-iter",
            "10",
        ]
    ).run()
    assert errors > 0
    assert "errors occurred. FAIL" in capsys.readouterr().out


def test_replay_requires_scores(graph_file):
    with pytest.raises(SystemExit):
        MainService(argv=["--graph", str(graph_file), "--engine", "replay"]).run()


def test_hh_run_exits_nonzero_on_divergence(tmp_path, graph_file):
    scores = tmp_path / "scores.json"
    scores.write_text(json.dumps({"hub": [1.0, 0, 0, 0], "authority": [0, 1.0, 0, 0]}))
    with pytest.raises(SystemExit) as exc:
        hh_main(
            [
                "run",
                "--graph",
                str(graph_file),
                "--engine",
                "replay",
                "--scores",
                str(scores),
                "--quiet",
            ]
        )
    assert exc.value.code == 1


def test_hh_run_passes(graph_file, capsys):
    hh_main(["run", "--graph", str(graph_file), "--quiet", "--max-iter", "5"])
    assert json.loads(capsys.readouterr().out)["validation"] == "PASS"


def test_engine_records_carry_run_id(tmp_path, graph_file, capsys):
    out_dir = tmp_path / "events"
    MainService(
        argv=[
            "--graph",
            str(graph_file),
            "--quiet",
            "--max-iter",
            "3",
            "--log-events",
            "--output-dir",
            str(out_dir),
        ]
    ).run()
    run_id = json.loads(capsys.readouterr().out)["run_id"]
    lines = (out_dir / "engine_log.jsonl").read_text().splitlines()
    assert [json.loads(line)["run"] for line in lines] == [run_id] * 3
    with (out_dir / "metrics.csv").open() as fh:
        counts = {row["category"]: row["count"] for row in csv.DictReader(fh)}
    assert counts == {"engine": "3", "run": "7"}
