from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from .core import Algorithm, Process, ProcessState, SimulationState, default_processes
from .simulator import advance, initial_state, is_complete
from .ticker import ManualTicker, Ticker
from .utils import EventLogger, SimulationStatistics, compute_statistics, validate_process


@dataclass
class SimulationConfig:
    algorithm: Algorithm = Algorithm.FCFS
    quantum: int = 2
    tick_interval_ms: int = 1000

    def __post_init__(self) -> None:
        algo = Algorithm.parse(self.algorithm)
        if algo is None:
            raise ValueError(f"unknown scheduling algorithm {self.algorithm!r}")
        self.algorithm = algo
        if int(self.quantum) < 1:
            raise ValueError(f"time quantum must be >= 1, got {self.quantum}")
        self.quantum = int(self.quantum)
        if self.tick_interval_ms <= 0:
            raise ValueError(f"tick interval must be positive, got {self.tick_interval_ms}")


StateListener = Callable[[SimulationState], None]


def _without_pid(state: SimulationState, pid: int) -> SimulationState:
    """Drop every trace of ``pid`` from ``state``."""
    return replace(
        state,
        current_pid=None if state.current_pid == pid else state.current_pid,
        quantum_remaining=0 if state.current_pid == pid else state.quantum_remaining,
        ready_queue=[p for p in state.ready_queue if p != pid],
        completed=[p for p in state.completed if p != pid],
        remaining={k: v for k, v in state.remaining.items() if k != pid},
        completion_times={k: v for k, v in state.completion_times.items() if k != pid},
        first_run={k: v for k, v in state.first_run.items() if k != pid},
    )


EDITABLE_FIELDS = ("name", "arrival_time", "burst_time", "priority", "color")


class SimulationEngine:
    """Owns the process set, the simulation state and the ticker driving it.

    Every tick is committed through :func:`advance`; ``self.state`` is only
    replaced once the new state is complete, so listeners never observe a
    half-applied tick. Not safe for concurrent use: drive it from a single
    control flow.
    """

    def __init__(
        self,
        processes: Optional[Sequence[Process]] = None,
        config: SimulationConfig | None = None,
        ticker: Ticker | None = None,
        logger: EventLogger | None = None,
    ):
        self.config = config or SimulationConfig()
        self.ticker = ticker or ManualTicker()
        self.logger = logger or EventLogger()
        self._processes: List[Process] = []
        self._listeners: List[StateListener] = []
        self.state: SimulationState = initial_state()
        for p in (default_processes() if processes is None else processes):
            validate_process(p, self._processes)
            self._processes.append(p)
        # pids are never reused, even after a removal
        self._next_pid = max((p.pid for p in self._processes), default=0) + 1

    # ------------------------------------------------------------------
    # Process management
    # ------------------------------------------------------------------

    @property
    def processes(self) -> List[Process]:
        return list(self._processes)

    def get_process(self, pid: int) -> Process:
        for p in self._processes:
            if p.pid == pid:
                return p
        raise KeyError(f"no process with pid {pid}")

    def add_process(self, arrival_time: int = 0, burst_time: int = 3, priority: int = 1,
                    name: Optional[str] = None) -> Process:
        """Append a process with the next unused pid, named ``P<pid>`` by default."""
        pid = self._next_pid
        process = Process(
            pid=pid,
            name=name or f"P{pid}",
            arrival_time=arrival_time,
            burst_time=burst_time,
            priority=priority,
        )
        validate_process(process, self._processes)
        self._processes.append(process)
        self._next_pid = pid + 1
        self._notify()
        return process

    def remove_process(self, pid: int) -> Process:
        process = self.get_process(pid)
        self._processes.remove(process)
        self.state = _without_pid(self.state, pid)
        self._notify()
        return process

    def update_process(self, pid: int, **fields) -> Process:
        """Edit a process definition.

        Changing ``burst_time`` restarts that process's remaining time.
        Both ``burst_time`` and ``arrival_time`` are only editable until the
        process is first dispatched. A queued process whose arrival moves past
        the clock leaves the ready queue until it arrives again.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"cannot edit fields: {', '.join(sorted(unknown))}")
        old = self.get_process(pid)
        burst_changed = "burst_time" in fields and fields["burst_time"] != old.burst_time
        if burst_changed and pid in self.state.first_run:
            raise ValueError(f"{old.name} has already run; reset before changing its burst time")
        arrival_changed = "arrival_time" in fields and fields["arrival_time"] != old.arrival_time
        if arrival_changed and pid in self.state.first_run:
            raise ValueError(f"{old.name} has already run; reset before changing its arrival time")
        new = replace(old, remaining_time=None, **fields)
        validate_process(new, [p for p in self._processes if p.pid != pid])
        self._processes[self._processes.index(old)] = new
        if burst_changed and pid in self.state.remaining:
            remaining = dict(self.state.remaining)
            del remaining[pid]
            self.state = replace(self.state, remaining=remaining)
        if new.arrival_time > self.state.current_time and pid in self.state.ready_queue:
            ready = [p for p in self.state.ready_queue if p != pid]
            self.state = replace(self.state, ready_queue=ready)
        self._notify()
        return new

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def algorithm(self) -> Algorithm:
        return self.config.algorithm

    def set_algorithm(self, algorithm) -> None:
        algo = Algorithm.parse(algorithm)
        if algo is None:
            raise ValueError(f"unknown scheduling algorithm {algorithm!r}")
        previous = self.config.algorithm
        self.config = replace(self.config, algorithm=algo)
        if algo is not previous and self.state.current_time > 0:
            self.logger.log_policy_switch(self.state.current_time, previous.value, algo.value, "user selection")

    def set_quantum(self, quantum: int) -> None:
        self.config = replace(self.config, quantum=quantum)

    def set_tick_interval(self, interval_ms: int) -> None:
        self.config = replace(self.config, tick_interval_ms=interval_ms)

    # ------------------------------------------------------------------
    # Simulation control
    # ------------------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        return is_complete(self.state, self._processes)

    @property
    def is_running(self) -> bool:
        return self.state.running

    def step(self) -> SimulationState:
        """Advance exactly one tick and commit the result."""
        before = self.state
        after = advance(before, self._processes, self.config.algorithm, self.config.quantum)
        self.logger.record_transition(before, after, self._processes, self.config.algorithm.value)
        self.state = after
        self._notify()
        return after

    def start(self) -> None:
        """Start auto-advancing on the ticker. No-op when the run is complete."""
        if self.state.running or self.is_finished:
            return
        self.state = replace(self.state, running=True)
        self._notify()
        self.ticker.start(self.config.tick_interval_ms, self._on_tick)

    def pause(self) -> None:
        self.ticker.stop()
        if self.state.running:
            self.state = replace(self.state, running=False)
            self._notify()

    def reset(self) -> None:
        """Discard all progress; process definitions are kept."""
        self.ticker.stop()
        self.state = initial_state()
        self.logger.clear()
        self._notify()

    def run_to_completion(self, max_ticks: int = 10_000) -> SimulationState:
        for _ in range(max_ticks):
            if self.is_finished:
                break
            self.step()
        return self.state

    def _on_tick(self) -> None:
        state = self.step()
        if not state.running or self.is_finished:
            self.pause()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def live_remaining(self, pid: int) -> int:
        return self.state.remaining_for(self.get_process(pid))

    def process_status(self, pid: int) -> ProcessState:
        self.get_process(pid)
        return self.state.status_of(pid)

    def statistics(self) -> SimulationStatistics:
        return compute_statistics(self._processes, self.state)

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.state)
