from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

# Ensure project root is on sys.path when running as a script
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from cpu_scheduling_simulator.backend.core import Algorithm, Process
from cpu_scheduling_simulator.backend.engine import SimulationConfig, SimulationEngine
from cpu_scheduling_simulator.backend.visualizer import format_gantt, plot_gantt


def parse_process(spec: str, pid: int) -> Process:
    """Parse ``NAME:ARRIVAL:BURST[:PRIORITY]``."""
    parts = spec.split(":")
    if len(parts) not in (3, 4):
        raise argparse.ArgumentTypeError(f"expected NAME:ARRIVAL:BURST[:PRIORITY], got {spec!r}")
    try:
        arrival, burst = int(parts[1]), int(parts[2])
        priority = int(parts[3]) if len(parts) == 4 else 0
    except ValueError:
        raise argparse.ArgumentTypeError(f"non-numeric value in {spec!r}")
    return Process(pid=pid, name=parts[0], arrival_time=arrival, burst_time=burst, priority=priority)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Step-by-step CPU scheduling simulator")
    p.add_argument("--algorithm", choices=[a.value for a in Algorithm], default=Algorithm.FCFS.value)
    p.add_argument("--quantum", type=int, default=2, help="Time quantum for RR")
    p.add_argument("--process", action="append", default=[], metavar="NAME:ARRIVAL:BURST[:PRIORITY]",
                   help="Process definition; repeat for more. Defaults to the built-in workload.")
    p.add_argument("--max-ticks", type=int, default=10_000)
    p.add_argument("--events", action="store_true", help="Print the event log")
    p.add_argument("--out", type=str, default=None, help="Save a Gantt chart image to this path")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    processes = None
    if args.process:
        processes = [parse_process(spec, pid) for pid, spec in enumerate(args.process, start=1)]
    engine = SimulationEngine(processes, SimulationConfig(algorithm=args.algorithm, quantum=args.quantum))
    state = engine.run_to_completion(args.max_ticks)

    print(f"--- {engine.algorithm.value} ---")
    print(format_gantt(state.timeline))

    if args.events:
        print("\n--- Events ---")
        for ev in engine.logger.process_events:
            print(f"t={ev['time']}: {ev['pid'] or '-'} {ev['event']}")

    stats = engine.statistics()
    print("\n--- Per-process statistics ---")
    for row in stats.processes:
        print(f"{row.name}: arrival={row.arrival_time}, burst={row.burst_time}, completion={row.completion_time}, "
              f"turnaround={row.turnaround_time}, waiting={row.waiting_time}, response={row.response_time}")
    print(f"Avg turnaround: {stats.avg_turnaround_time:.2f}, Avg waiting: {stats.avg_waiting_time:.2f}, "
          f"Throughput: {stats.throughput:.3f}, CPU utilization: {stats.cpu_utilization:.1f}%")

    if args.out:
        plot_gantt(state.timeline, engine.logger, args.out, title=f"Gantt Chart ({engine.algorithm.value})")
        print(f"Saved plot to {args.out}")


if __name__ == "__main__":
    main()
