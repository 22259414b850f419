from __future__ import annotations

import pytest

from cpu_scheduling_simulator.backend.core import Algorithm, Process, ProcessState, SimulationState
from cpu_scheduling_simulator.backend.engine import SimulationConfig, SimulationEngine
from cpu_scheduling_simulator.backend.ticker import BlockingTicker, ManualTicker


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def engine(ticker):
    """Engine over the seed workload, driven by hand."""
    return SimulationEngine(config=SimulationConfig(algorithm=Algorithm.FCFS), ticker=ticker)


def two_processes():
    return [
        Process(pid=1, name="P1", arrival_time=0, burst_time=5),
        Process(pid=2, name="P2", arrival_time=2, burst_time=3),
    ]


class TestConfig:
    def test_defaults(self):
        config = SimulationConfig()
        assert config.algorithm is Algorithm.FCFS
        assert config.quantum == 2
        assert config.tick_interval_ms == 1000

    def test_algorithm_name_is_parsed(self):
        assert SimulationConfig(algorithm="rr").algorithm is Algorithm.RR

    @pytest.mark.parametrize("kwargs", [
        {"quantum": 0},
        {"tick_interval_ms": 0},
        {"algorithm": "LOTTERY"},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            SimulationConfig(**kwargs)


class TestControl:
    def test_reset_without_steps_is_initial_state(self, engine):
        engine.reset()
        assert engine.state == SimulationState()

    def test_reset_discards_progress_but_keeps_processes(self, engine):
        for _ in range(4):
            engine.step()
        engine.reset()
        assert engine.state == SimulationState()
        assert [p.name for p in engine.processes] == ["P1", "P2", "P3", "P4"]
        assert engine.logger.process_events == []

    def test_step_commits_exactly_one_tick(self, engine):
        state = engine.step()
        assert state is engine.state
        assert state.current_time == 1
        assert engine.live_remaining(1) == 4
        assert engine.get_process(1).burst_time == 5

    def test_run_to_completion(self, engine):
        state = engine.run_to_completion()
        assert engine.is_finished
        assert state.current_time == 18

    def test_auto_run_on_ticker(self, engine, ticker):
        engine.start()
        assert engine.is_running
        assert ticker.active
        assert ticker.interval_ms == 1000
        assert ticker.fire(100) == 18
        assert engine.is_finished
        assert not engine.is_running
        assert not ticker.active

    def test_pause_stops_ticks(self, engine, ticker):
        engine.start()
        ticker.fire(3)
        engine.pause()
        assert not engine.is_running
        assert ticker.fire(5) == 0
        assert engine.state.current_time == 3

    def test_start_when_finished_is_noop(self, engine, ticker):
        engine.run_to_completion()
        engine.start()
        assert not engine.is_running
        assert not ticker.active

    def test_blocking_ticker_runs_until_complete(self):
        sleeps = []
        engine = SimulationEngine(two_processes(), SimulationConfig(tick_interval_ms=250),
                                  ticker=BlockingTicker(sleep=sleeps.append))
        engine.start()
        assert engine.is_finished
        assert not engine.is_running
        assert sleeps == [0.25] * 8

    def test_listeners_see_every_commit(self, engine):
        seen = []
        engine.subscribe(lambda s: seen.append(s.current_time))
        engine.step()
        engine.step()
        assert seen == [1, 2]


class TestProcessManagement:
    def test_add_uses_next_pid_and_name(self, engine):
        p = engine.add_process(arrival_time=1, burst_time=2, priority=5)
        assert (p.pid, p.name) == (5, "P5")
        assert engine.live_remaining(5) == 2

    def test_add_to_empty_engine(self, ticker):
        engine = SimulationEngine([], ticker=ticker)
        assert engine.add_process().pid == 1

    @pytest.mark.parametrize("kwargs", [
        {"burst_time": 0},
        {"arrival_time": -1},
        {"priority": -2},
        {"name": "P1"},
    ])
    def test_add_rejects_bad_definitions(self, engine, kwargs):
        with pytest.raises(ValueError):
            engine.add_process(**kwargs)

    def test_duplicate_pids_rejected_at_construction(self):
        procs = two_processes() + [Process(pid=1, name="X", arrival_time=0, burst_time=1)]
        with pytest.raises(ValueError):
            SimulationEngine(procs)

    def test_remove_unknown_pid(self, engine):
        with pytest.raises(KeyError):
            engine.remove_process(42)

    def test_removed_process_leaves_the_run(self, engine):
        engine.step()
        engine.step()
        engine.remove_process(1)
        engine.step()
        assert engine.state.current_pid == 2
        assert 1 not in engine.state.ready_queue

    def test_editing_burst_resets_remaining(self, engine):
        engine.update_process(3, burst_time=4)
        assert engine.live_remaining(3) == 4

    def test_editing_burst_after_dispatch_is_rejected(self, engine):
        engine.step()
        with pytest.raises(ValueError):
            engine.update_process(1, burst_time=9)
        engine.update_process(1, priority=7)
        assert engine.get_process(1).priority == 7

    def test_pid_not_reused_after_removing_highest(self, engine):
        engine.run_to_completion()
        engine.remove_process(4)
        p = engine.add_process(arrival_time=0, burst_time=3)
        assert (p.pid, p.name) == (5, "P5")
        assert engine.live_remaining(5) == 3
        assert not engine.is_finished
        engine.run_to_completion()
        stats = engine.statistics()
        assert [r.name for r in stats.processes] == ["P1", "P2", "P3", "P5"]
        assert stats.processes[-1].completion_time == 21

    def test_removal_clears_pid_from_state(self, engine):
        engine.run_to_completion()
        engine.remove_process(4)
        state = engine.state
        assert 4 not in state.completed
        assert 4 not in state.remaining
        assert 4 not in state.completion_times
        assert 4 not in state.first_run

    def test_arrival_moved_later_leaves_ready_queue(self, ticker):
        procs = [
            Process(pid=1, name="P1", arrival_time=0, burst_time=3),
            Process(pid=2, name="P2", arrival_time=0, burst_time=2),
        ]
        engine = SimulationEngine(procs, ticker=ticker)
        engine.step()
        assert engine.state.ready_queue == [2]
        engine.update_process(2, arrival_time=10)
        assert engine.state.ready_queue == []
        engine.run_to_completion()
        assert [(e.label, e.start, e.end) for e in engine.state.timeline] == [
            ("P1", 0, 3), ("IDLE", 3, 10), ("P2", 10, 12),
        ]
        row = engine.statistics().processes[-1]
        assert (row.turnaround_time, row.waiting_time) == (2, 0)

    def test_editing_arrival_after_dispatch_is_rejected(self, engine):
        engine.step()
        with pytest.raises(ValueError):
            engine.update_process(1, arrival_time=3)
        assert engine.get_process(1).arrival_time == 0

    def test_unknown_field_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.update_process(1, remaining_time=0)


class TestQueries:
    def test_process_status_lifecycle(self, ticker):
        engine = SimulationEngine(two_processes(), ticker=ticker)
        assert engine.process_status(2) is ProcessState.NEW
        for _ in range(3):
            engine.step()
        assert engine.process_status(1) is ProcessState.RUNNING
        assert engine.process_status(2) is ProcessState.READY
        engine.run_to_completion()
        assert engine.process_status(1) is ProcessState.TERMINATED

    def test_statistics_for_seed_workload(self, engine):
        engine.run_to_completion()
        stats = engine.statistics()
        assert [r.completion_time for r in stats.processes] == [5, 8, 16, 18]
        assert [r.waiting_time for r in stats.processes] == [0, 3, 4, 10]
        assert stats.avg_turnaround_time == pytest.approx(8.75)
        assert stats.avg_waiting_time == pytest.approx(4.25)
        assert stats.avg_response_time == pytest.approx(4.25)
        assert stats.cpu_utilization == pytest.approx(100.0)
        assert stats.throughput == pytest.approx(4 / 18)

    def test_statistics_skip_unfinished(self, engine):
        for _ in range(6):
            engine.step()
        assert [r.name for r in engine.statistics().processes] == ["P1"]


class TestEventLog:
    def test_fcfs_events(self, ticker):
        engine = SimulationEngine(two_processes(), ticker=ticker)
        engine.run_to_completion()
        events = [(e["time"], e["pid"], e["event"]) for e in engine.logger.process_events]
        assert events == [
            (0, "P1", "arrive"),
            (0, "P1", "dispatch"),
            (2, "P2", "arrive"),
            (5, "P1", "complete"),
            (5, "P2", "dispatch"),
            (8, "P2", "complete"),
        ]
        assert engine.logger.timeline[-1] == {"start": 5, "end": 8, "pid": "P2", "policy": "FCFS"}

    def test_srt_preemption_logged(self, ticker):
        procs = [
            Process(pid=1, name="P1", arrival_time=0, burst_time=5),
            Process(pid=2, name="P2", arrival_time=2, burst_time=2),
        ]
        engine = SimulationEngine(procs, SimulationConfig(algorithm="SRT"), ticker=ticker)
        engine.run_to_completion()
        assert {"time": 2, "pid": "P1", "event": "preempt"} in engine.logger.process_events

    def test_quantum_expiry_logged(self, ticker):
        procs = [
            Process(pid=1, name="P1", arrival_time=0, burst_time=3),
            Process(pid=2, name="P2", arrival_time=0, burst_time=3),
        ]
        engine = SimulationEngine(procs, SimulationConfig(algorithm="RR", quantum=2), ticker=ticker)
        engine.run_to_completion()
        assert {"time": 2, "pid": "P1", "event": "quantum_expired"} in engine.logger.process_events

    def test_idle_logged_once_per_gap(self, ticker):
        procs = [Process(pid=1, name="P1", arrival_time=3, burst_time=1)]
        engine = SimulationEngine(procs, ticker=ticker)
        engine.run_to_completion()
        assert [e["time"] for e in engine.logger.process_events if e["event"] == "idle"] == [0]

    def test_policy_switch_logged_mid_run(self, engine):
        engine.set_algorithm("SJF")
        assert engine.logger.policy_switches == []
        engine.step()
        engine.set_algorithm(Algorithm.RR)
        assert engine.logger.policy_switches == [
            {"time": 1, "from": "SJF", "to": "RR", "reason": "user selection"}
        ]

    def test_unknown_algorithm_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.set_algorithm("LOTTERY")
