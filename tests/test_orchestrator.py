import io
import json

import numpy as np
import pytest

from Hits_Harness.config import RunConfig
from Hits_Harness.engine import EngineError, ReplayEngine, VectorizedEngine
from Hits_Harness.engine.reference import hits_reference
from Hits_Harness.graph import CsrGraph, GraphView
from Hits_Harness.validation import RunState, run_validation

ALL_STATES = [s.value for s in RunState]


def _reference(graph, max_iter=10):
    return hits_reference(graph.forward, graph.reverse, max_iter)


def test_vectorized_engine_passes(small_graph):
    out = io.StringIO()
    cfg = RunConfig(max_iter=15, device=(0, 1), top_k=2)
    stats = run_validation(small_graph, VectorizedEngine(), cfg, out=out)
    assert stats.validation == "PASS"
    assert stats.num_errors == 0
    assert stats.hub_mismatches == 0 and stats.authority_mismatches == 0
    assert stats.states == ALL_STATES
    assert stats.iterations == 15
    assert len(stats.top_hub) == 2
    assert all(stats.invariants.values())
    text = out.getvalue()
    assert "Computing reference value ..." in text
    assert "0 errors occurred. PASS" in text
    assert "Top 2 hub rank:" in text
    assert "Top 2 authority rank:" in text


def test_quick_mode_skips_reference(small_graph):
    out = io.StringIO()
    stats = run_validation(
        small_graph, VectorizedEngine(), RunConfig(quick=True), out=out
    )
    assert stats.validation == "UNVALIDATED"
    assert stats.reference_time is None
    assert RunState.REFERENCE_COMPUTED.value not in stats.states
    assert RunState.COMPARED.value not in stats.states
    assert "Computing reference value" not in out.getvalue()
    assert stats.top_hub


def test_quiet_mode_prints_nothing(small_graph):
    out = io.StringIO()
    stats = run_validation(
        small_graph, VectorizedEngine(), RunConfig(quiet=True), out=out
    )
    assert stats.validation == "PASS"
    assert out.getvalue() == ""


def test_divergent_scores_are_counted(cycle_graph):
    hub, auth = _reference(cycle_graph)
    bad_hub = hub.copy()
    bad_hub[1] *= 1.5
    out = io.StringIO()
    stats = run_validation(
        cycle_graph, ReplayEngine(bad_hub, auth), RunConfig(max_iter=10), out=out
    )
    assert stats.validation == "FAIL"
    assert stats.hub_mismatches == 1
    assert stats.authority_mismatches == 0
    assert "hub INCORRECT: [1]" in out.getvalue()
    assert "1 errors occurred. FAIL" in out.getvalue()


def test_hub_only_ignores_authority(cycle_graph):
    hub, _ = _reference(cycle_graph)
    engine = ReplayEngine(hub, np.zeros(3) + 0.9)
    stats = run_validation(
        cycle_graph, engine, RunConfig(max_iter=10, hub_only=True, quiet=True)
    )
    assert stats.authority_mismatches is None
    assert stats.validation == "PASS"


def test_engine_failure_aborts_without_comparison(cycle_graph):
    engine = ReplayEngine([1.0] * 3, [1.0] * 3, fail_stage="run")
    with pytest.raises(EngineError) as exc:
        run_validation(cycle_graph, engine, RunConfig(quiet=True))
    assert exc.value.stage == "run"
    assert "extract" not in [stage for stage, _ in engine.calls]


class _BrokenEngine(ReplayEngine):
    def run(self, max_iter):
        raise ZeroDivisionError("device fault")


def test_foreign_exceptions_are_wrapped(cycle_graph):
    engine = _BrokenEngine([1.0] * 3, [1.0] * 3)
    with pytest.raises(EngineError) as exc:
        run_validation(cycle_graph, engine, RunConfig(quiet=True))
    assert exc.value.stage == "run"
    assert isinstance(exc.value.__cause__, ZeroDivisionError)
    assert exc.value.location is not None


def test_num_runs_repeats_reset_and_run(cycle_graph):
    hub, auth = _reference(cycle_graph)
    engine = ReplayEngine(hub, auth)
    run_validation(cycle_graph, engine, RunConfig(num_runs=3, quiet=True))
    stages = [stage for stage, _ in engine.calls]
    assert stages.count("initialize") == 1
    assert stages.count("reset") == 3
    assert stages.count("run") == 3
    assert stages.count("extract") == 1


def test_engine_receives_configuration(cycle_graph):
    hub, auth = _reference(cycle_graph)
    engine = ReplayEngine(hub, auth)
    cfg = RunConfig(
        device=(2, 5), partition_method="random", src=1, delta=0.5, quiet=True
    )
    run_validation(cycle_graph, engine, cfg)
    calls = dict(engine.calls)
    assert calls["initialize"]["device_count"] == 2
    assert calls["initialize"]["device_ids"] == [2, 5]
    assert calls["initialize"]["partition_method"] == "random"
    assert calls["reset"]["src"] == 1
    assert calls["reset"]["delta"] == 0.5


def test_malformed_graph_rejected_before_engine_calls():
    forward = CsrGraph.from_edges(3, [(0, 1), (1, 2)])
    engine = ReplayEngine([1.0] * 3, [1.0] * 3)
    with pytest.raises(ValueError):
        run_validation(GraphView(forward, forward), engine, RunConfig(quiet=True))
    assert engine.calls == []


def test_event_logs_written(tmp_path, cycle_graph):
    cfg = RunConfig(quiet=True, log_events=True, output_dir=str(tmp_path))
    stats = run_validation(cycle_graph, VectorizedEngine(), cfg, run_id="abc")
    records = [
        json.loads(line)
        for line in (tmp_path / "run_log.jsonl").read_text().splitlines()
    ]
    assert [r["label"] for r in records] == ALL_STATES
    assert all(r["run"] == "abc" for r in records)
    assert records[-1]["validation"] == "PASS"
    assert (tmp_path / "metrics.csv").exists()
    assert stats.to_dict()["states"] == ALL_STATES


def test_stats_record_is_json_serialisable(cycle_graph):
    stats = run_validation(cycle_graph, VectorizedEngine(), RunConfig(quiet=True))
    data = json.loads(json.dumps(stats.to_dict()))
    assert data["config"]["device"] == [0]
    assert data["num_vertices"] == 3
    assert data["top_hub"][0][0] == 0


class _ShortEngine(ReplayEngine):
    def extract(self):
        hub, auth = super().extract()
        return hub[:-1], auth[:-1]


def test_short_extract_reports_location(cycle_graph):
    engine = _ShortEngine([1.0] * 3, [1.0] * 3)
    with pytest.raises(EngineError) as exc:
        run_validation(cycle_graph, engine, RunConfig(quiet=True))
    assert exc.value.stage == "extract"
    assert exc.value.location is not None
    assert "orchestrator.py:" in exc.value.location
