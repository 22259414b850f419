"""
Scheduling decision functions for FCFS, SJF, SRT, Priority, HRN and Round Robin.

Each algorithm is one pure ordering function over the ready candidates.
``select_next`` dispatches on the ``Algorithm`` enum through ``ORDERINGS``.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Dict, List, Optional, Sequence, Union

from .core import Algorithm, Process


HRN_TOLERANCE = 0.001

Ordering = Callable[[List[Process], int], Process]


def response_ratio(process: Process, current_time: int) -> float:
    """(waiting + burst) / burst, where waiting counts from arrival."""
    waiting = max(0, current_time - process.arrival_time)
    return (waiting + process.burst_time) / process.burst_time


def _fcfs(candidates: List[Process], current_time: int) -> Process:
    # earliest arrival first, tie-breaker by pid
    return min(candidates, key=lambda p: (p.arrival_time, p.pid))


def _sjf(candidates: List[Process], current_time: int) -> Process:
    # shortest total burst, tie-breaker by arrival
    return min(candidates, key=lambda p: (p.burst_time, p.arrival_time, p.pid))


def _srt(candidates: List[Process], current_time: int) -> Process:
    return min(candidates, key=lambda p: (p.remaining_time, p.arrival_time, p.pid))


def _priority(candidates: List[Process], current_time: int) -> Process:
    # lower number = higher priority
    return min(candidates, key=lambda p: (p.priority, p.arrival_time, p.pid))


def _hrn(candidates: List[Process], current_time: int) -> Process:
    ratios = {p.pid: response_ratio(p, current_time) for p in candidates}

    def compare(a: Process, b: Process) -> int:
        diff = ratios[a.pid] - ratios[b.pid]
        if abs(diff) < HRN_TOLERANCE:
            return (a.arrival_time - b.arrival_time) or (a.pid - b.pid)
        # highest ratio first
        return -1 if diff > 0 else 1

    return sorted(candidates, key=cmp_to_key(compare))[0]


def _round_robin(candidates: List[Process], current_time: int) -> Process:
    # queue order is the policy
    return candidates[0]


def _by_pid(candidates: List[Process], current_time: int) -> Process:
    return min(candidates, key=lambda p: p.pid)


ORDERINGS: Dict[Algorithm, Ordering] = {
    Algorithm.FCFS: _fcfs,
    Algorithm.SJF: _sjf,
    Algorithm.SRT: _srt,
    Algorithm.PRIORITY: _priority,
    Algorithm.HRN: _hrn,
    Algorithm.RR: _round_robin,
}

# Unknown algorithm names are scheduled in pid order rather than rejected.
FALLBACK_ORDERING: Ordering = _by_pid


def select_next(
    candidates: Sequence[Process],
    current_time: int,
    algorithm: Union[Algorithm, str, None],
) -> Optional[Process]:
    """Pick the process that should occupy the CPU next.

    ``candidates`` must already be filtered to ready processes (arrived, not
    completed, remaining > 0). The sequence is copied, never reordered.
    """
    pool = list(candidates)
    if not pool:
        return None
    algo = Algorithm.parse(algorithm)
    ordering = ORDERINGS[algo] if algo is not None else FALLBACK_ORDERING
    return ordering(pool, current_time)
