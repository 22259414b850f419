"""
Core data structures for the CPU scheduling simulator.
Includes Process, TimelineEntry, SimulationState and the Algorithm enum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


IDLE = "IDLE"
IDLE_COLOR = "#E5E7EB"

PALETTE = [
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FECA57",
    "#FF9FF3",
    "#54A0FF",
]


class Algorithm(str, Enum):
    """Scheduling disciplines supported by the simulator."""
    FCFS = "FCFS"
    SJF = "SJF"
    SRT = "SRT"
    PRIORITY = "Priority"
    HRN = "HRN"
    RR = "RR"

    @property
    def preemptive(self) -> bool:
        """SRT and RR may displace the running process mid-burst."""
        return self in (Algorithm.SRT, Algorithm.RR)

    @classmethod
    def parse(cls, name) -> Optional["Algorithm"]:
        """Look up an algorithm by value or member name, ignoring case.

        Returns None for unknown names so callers can apply the fallback
        ordering instead of failing.
        """
        if isinstance(name, Algorithm):
            return name
        if name is None:
            return None
        key = str(name).strip().upper()
        for algo in cls:
            if algo.value.upper() == key or algo.name == key:
                return algo
        return None


class ProcessState(Enum):
    """Display status of a process at a given point of the simulation."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


@dataclass
class Process:
    """A schedulable unit of work.

    ``remaining_time`` defaults to the full burst. The engine keeps the live
    value in ``SimulationState.remaining`` and only hands snapshots carrying
    it to the selector.
    """
    pid: int
    name: str
    arrival_time: int
    burst_time: int
    priority: int = 0
    remaining_time: Optional[int] = None
    color: Optional[str] = None

    def __post_init__(self):
        """Initialize derived attributes."""
        self.remaining_time = self.burst_time if self.remaining_time is None else self.remaining_time
        self.color = PALETTE[self.pid % len(PALETTE)] if self.color is None else self.color

    @property
    def is_finished(self) -> bool:
        return self.remaining_time == 0


@dataclass
class TimelineEntry:
    """Contiguous interval ``[start, end)`` during which one occupant held the CPU."""
    label: str
    start: int
    end: int
    color: str

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_idle(self) -> bool:
        return self.label == IDLE


@dataclass
class SimulationState:
    """Snapshot of the step simulator.

    A new instance is produced by every ``advance`` call; existing instances
    are never modified in place.
    """
    current_time: int = 0
    timeline: List[TimelineEntry] = field(default_factory=list)
    current_pid: Optional[int] = None
    ready_queue: List[int] = field(default_factory=list)
    completed: List[int] = field(default_factory=list)
    quantum_remaining: int = 0
    running: bool = False
    remaining: Dict[int, int] = field(default_factory=dict)
    completion_times: Dict[int, int] = field(default_factory=dict)
    first_run: Dict[int, int] = field(default_factory=dict)

    def remaining_for(self, process: Process) -> int:
        """Live remaining time of ``process``; untouched processes still owe their full burst."""
        return self.remaining.get(process.pid, process.burst_time)

    def status_of(self, pid: int) -> ProcessState:
        if pid in self.completed:
            return ProcessState.TERMINATED
        if pid == self.current_pid:
            return ProcessState.RUNNING
        if pid in self.ready_queue:
            return ProcessState.READY
        return ProcessState.NEW


def default_processes() -> List[Process]:
    """Seed workload shown when the simulator starts."""
    return [
        Process(pid=1, name="P1", arrival_time=0, burst_time=5, priority=3),
        Process(pid=2, name="P2", arrival_time=2, burst_time=3, priority=1),
        Process(pid=3, name="P3", arrival_time=4, burst_time=8, priority=2),
        Process(pid=4, name="P4", arrival_time=6, burst_time=2, priority=4),
    ]
