import argparse

import pytest

from cpu_scheduling_simulator.backend.core import IDLE, IDLE_COLOR, TimelineEntry
from cpu_scheduling_simulator.backend.utils import EventLogger
from cpu_scheduling_simulator.backend.visualizer import format_gantt, plot_gantt
from cpu_scheduling_simulator.scripts.run_simulation import main, parse_process


@pytest.fixture
def timeline():
    return [
        TimelineEntry("P1", 0, 2, "#3B82F6"),
        TimelineEntry(IDLE, 2, 3, IDLE_COLOR),
        TimelineEntry("P2", 3, 5, "#10B981"),
    ]


def test_format_gantt_lines_up_boundaries(timeline):
    bar, ticks = format_gantt(timeline, cell_width=4).split("\n")
    assert bar.startswith("|") and bar.endswith("|")
    assert bar.count("|") == 4
    assert [label for label in bar.strip("|").split("|")] == ["   P1   ", " IDLE ", "   P2   "]
    assert ticks.split() == ["0", "2", "3", "5"]
    assert ticks.index("2") == bar.index("|", 1)


def test_format_gantt_empty():
    assert format_gantt([]) == "(empty timeline)"


def test_plot_gantt_saves_file(timeline, tmp_path):
    logger = EventLogger()
    logger.log_policy_switch(3, "FCFS", "SJF", "user selection")
    out = tmp_path / "nested" / "gantt.png"
    fig = plot_gantt(timeline, logger, str(out), title="test")
    assert out.exists()
    assert fig.axes[0].get_title() == "test"


class TestRunSimulationScript:
    def test_parse_process(self):
        p = parse_process("A:2:5:1", pid=3)
        assert (p.pid, p.name, p.arrival_time, p.burst_time, p.priority) == (3, "A", 2, 5, 1)
        assert parse_process("B:0:4", pid=1).priority == 0

    @pytest.mark.parametrize("spec", ["A:1", "A:x:3", "A:0:1:2:3"])
    def test_parse_process_rejects_malformed(self, spec):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_process(spec, pid=1)

    def test_default_workload(self, capsys):
        main(["--algorithm", "SJF"])
        out = capsys.readouterr().out
        assert "--- SJF ---" in out
        assert "P4: arrival=6, burst=2, completion=10, turnaround=4, waiting=2, response=2" in out
        assert "Avg turnaround: 7.25, Avg waiting: 2.75" in out

    def test_custom_processes_with_events(self, capsys, tmp_path):
        out_path = tmp_path / "rr.png"
        main(["--algorithm", "RR", "--quantum", "2",
              "--process", "A:0:3", "--process", "B:0:3",
              "--events", "--out", str(out_path)])
        out = capsys.readouterr().out
        assert "t=2: A quantum_expired" in out
        assert "CPU utilization: 100.0%" in out
        assert out_path.exists()
