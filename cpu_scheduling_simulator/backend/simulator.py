from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Union

from .core import IDLE, IDLE_COLOR, Algorithm, Process, SimulationState, TimelineEntry
from .schedulers import select_next


def initial_state() -> SimulationState:
    return SimulationState()


def is_complete(state: SimulationState, processes: Sequence[Process]) -> bool:
    """True once every process has no remaining burst (vacuously for an empty set)."""
    return all(state.remaining_for(p) == 0 for p in processes)


def _extend_timeline(timeline: List[TimelineEntry], label: str, tick: int, color: str) -> None:
    last = timeline[-1] if timeline else None
    if last is not None and last.label == label and last.end == tick:
        timeline[-1] = replace(last, end=tick + 1)
    else:
        timeline.append(TimelineEntry(label=label, start=tick, end=tick + 1, color=color))


def advance(
    state: SimulationState,
    processes: Sequence[Process],
    algorithm: Union[Algorithm, str],
    quantum: int = 2,
) -> SimulationState:
    """Advance the simulation by exactly one tick and return the new state.

    ``processes`` are static definitions; live remaining times are read from
    and written to the state. Neither argument is mutated.
    """
    algo = Algorithm.parse(algorithm)
    quantum = max(1, int(quantum))
    by_pid: Dict[int, Process] = {p.pid: p for p in processes}

    remaining = {p.pid: state.remaining_for(p) for p in processes}

    if all(r == 0 for r in remaining.values()):
        return replace(state, running=False)

    now = state.current_time
    completed = list(state.completed)
    completion_times = dict(state.completion_times)
    first_run = dict(state.first_run)
    # pids that disappeared from the process set are dropped silently
    ready = [pid for pid in state.ready_queue if pid in by_pid]
    current: Optional[int] = state.current_pid if state.current_pid in by_pid else None
    quantum_left = state.quantum_remaining

    def retire(pid: int, at: int) -> None:
        completed.append(pid)
        completion_times[pid] = at
        if pid in ready:
            ready.remove(pid)

    # Arrivals
    for p in processes:
        if (p.arrival_time <= now and remaining[p.pid] > 0 and p.pid not in completed
                and p.pid not in ready and p.pid != current):
            ready.append(p.pid)

    # Current process finished outside of a tick
    if current is not None and remaining[current] == 0:
        if current not in completed:
            retire(current, now)
        current = None
        quantum_left = 0

    # Quantum expiry
    if algo is Algorithm.RR and current is not None and quantum_left == 0:
        if ready:
            ready.append(current)
            current = None
        else:
            # nobody is waiting, so the same process gets a fresh slice
            quantum_left = quantum

    # Selection
    if current is None or (algo is not None and algo.preemptive):
        pool = [current] if current is not None else []
        pool += [pid for pid in ready if remaining[pid] > 0 and pid not in completed]
        snapshots = [replace(by_pid[pid], remaining_time=remaining[pid]) for pid in pool]
        chosen = select_next(snapshots, now, algo if algo is not None else algorithm)
        if chosen is not None and chosen.pid != current:
            if current is not None:
                ready.append(current)
            ready.remove(chosen.pid)
            current = chosen.pid
            if algo is Algorithm.RR:
                quantum_left = quantum

    timeline = list(state.timeline)
    if current is not None:
        proc = by_pid[current]
        _extend_timeline(timeline, proc.name, now, proc.color)
        first_run.setdefault(current, now)
        remaining[current] -= 1
        if algo is Algorithm.RR:
            quantum_left = max(0, quantum_left - 1)
        if remaining[current] == 0:
            retire(current, now + 1)
            current = None
            quantum_left = 0
    elif any(p.arrival_time > now and remaining[p.pid] > 0 for p in processes):
        _extend_timeline(timeline, IDLE, now, IDLE_COLOR)

    return SimulationState(
        current_time=now + 1,
        timeline=timeline,
        current_pid=current,
        ready_queue=ready,
        completed=completed,
        quantum_remaining=quantum_left,
        running=state.running,
        remaining=remaining,
        completion_times=completion_times,
        first_run=first_run,
    )
