from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .core import IDLE, Process, SimulationState


class EventLogger:
    def __init__(self) -> None:
        self.policy_switches: List[Dict[str, Any]] = []
        self.process_events: List[Dict[str, Any]] = []
        self.timeline: List[Dict[str, Any]] = []

    def clear(self) -> None:
        self.policy_switches.clear()
        self.process_events.clear()
        self.timeline.clear()

    def log_policy_switch(self, time_s: int, from_policy: str, to_policy: str, reason: str) -> None:
        self.policy_switches.append({
            "time": time_s,
            "from": from_policy,
            "to": to_policy,
            "reason": reason,
        })

    def log_process_event(self, time_s: int, pid: Optional[str], event: str) -> None:
        self.process_events.append({
            "time": time_s,
            "pid": pid,
            "event": event,
        })

    def events_for(self, pid: str) -> List[Dict[str, Any]]:
        return [e for e in self.process_events if e["pid"] == pid]

    def record_transition(
        self,
        before: SimulationState,
        after: SimulationState,
        processes: Sequence[Process],
        policy: str,
    ) -> None:
        """Derive process events from one committed tick.

        Events are stamped with the tick that was just simulated
        (``before.current_time``), completions with their completion tick.
        """
        if after.current_time == before.current_time:
            return
        tick = before.current_time
        names = {p.pid: p.name for p in processes}
        seen_before = set(before.ready_queue) | set(before.completed)
        if before.current_pid is not None:
            seen_before.add(before.current_pid)

        ran = None
        if after.timeline and after.timeline[-1].end == after.current_time:
            ran = after.timeline[-1].label

        for pid in list(after.ready_queue) + list(after.completed) + [after.current_pid]:
            if pid is None or pid in seen_before or pid not in names:
                continue
            seen_before.add(pid)
            self.log_process_event(tick, names[pid], "arrive")

        prev = names.get(before.current_pid)
        if prev is not None and prev != ran and before.current_pid in after.ready_queue:
            self.log_process_event(tick, prev, "quantum_expired" if policy == "RR" else "preempt")
        if ran == IDLE:
            if not before.timeline or before.timeline[-1].label != IDLE:
                self.log_process_event(tick, None, "idle")
        elif ran is not None and ran != prev:
            self.log_process_event(tick, ran, "dispatch")

        for pid in after.completed:
            if pid not in before.completed and pid in names:
                self.log_process_event(after.completion_times.get(pid, after.current_time), names[pid], "complete")

        self.timeline = [
            {"start": e.start, "end": e.end, "pid": e.label, "policy": policy}
            for e in after.timeline
        ]


@dataclass
class ProcessStatistics:
    name: str
    arrival_time: int
    burst_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: Optional[int] = None


@dataclass
class SimulationStatistics:
    processes: List[ProcessStatistics] = field(default_factory=list)
    avg_turnaround_time: float = 0.0
    avg_waiting_time: float = 0.0
    avg_response_time: float = 0.0
    throughput: float = 0.0
    cpu_utilization: float = 0.0


def compute_turnaround_times(processes: Iterable[Process], state: SimulationState) -> Dict[str, int]:
    tat: Dict[str, int] = {}
    for p in processes:
        completion = state.completion_times.get(p.pid)
        if completion is None:
            continue
        tat[p.name] = completion - p.arrival_time
    return tat


def compute_waiting_times(processes: Iterable[Process], state: SimulationState) -> Dict[str, int]:
    waiting: Dict[str, int] = {}
    for p in processes:
        completion = state.completion_times.get(p.pid)
        if completion is None:
            continue
        waiting[p.name] = completion - p.arrival_time - p.burst_time
    return waiting


def compute_avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_throughput(state: SimulationState) -> float:
    if state.current_time <= 0:
        return 0.0
    return len(state.completed) / state.current_time


def compute_cpu_utilization(state: SimulationState) -> float:
    """Percentage of elapsed ticks spent running a process."""
    if state.current_time <= 0:
        return 0.0
    busy = sum(e.duration for e in state.timeline if not e.is_idle)
    return busy / state.current_time * 100


def compute_statistics(processes: Sequence[Process], state: SimulationState) -> SimulationStatistics:
    """Per-process and average metrics for every process that has completed."""
    turnaround = compute_turnaround_times(processes, state)
    waiting = compute_waiting_times(processes, state)
    rows: List[ProcessStatistics] = []
    for p in processes:
        if p.name not in turnaround:
            continue
        first = state.first_run.get(p.pid)
        rows.append(ProcessStatistics(
            name=p.name,
            arrival_time=p.arrival_time,
            burst_time=p.burst_time,
            completion_time=state.completion_times[p.pid],
            turnaround_time=turnaround[p.name],
            waiting_time=waiting[p.name],
            response_time=None if first is None else first - p.arrival_time,
        ))
    responses = [r.response_time for r in rows if r.response_time is not None]
    return SimulationStatistics(
        processes=rows,
        avg_turnaround_time=compute_avg([r.turnaround_time for r in rows]),
        avg_waiting_time=compute_avg([r.waiting_time for r in rows]),
        avg_response_time=compute_avg(responses),
        throughput=compute_throughput(state),
        cpu_utilization=compute_cpu_utilization(state),
    )


def validate_process(process: Process, existing: Sequence[Process] = ()) -> None:
    """Reject malformed definitions before they reach the simulator."""
    if process.arrival_time < 0:
        raise ValueError(f"{process.name}: arrival time must be >= 0, got {process.arrival_time}")
    if process.burst_time < 1:
        raise ValueError(f"{process.name}: burst time must be >= 1, got {process.burst_time}")
    if process.priority < 0:
        raise ValueError(f"{process.name}: priority must be >= 0, got {process.priority}")
    for other in existing:
        if other.pid == process.pid:
            raise ValueError(f"duplicate pid {process.pid}")
        if other.name == process.name:
            raise ValueError(f"duplicate process name {process.name!r}")
