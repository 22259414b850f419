from __future__ import annotations

import shlex
import time
from typing import Callable, List, Optional
from colorama import Fore, Style, init as colorama_init

from .core import Algorithm
from .engine import SimulationConfig, SimulationEngine
from .schedulers import response_ratio
from .ticker import BlockingTicker
from .visualizer import format_gantt, plot_gantt


FIELD_ALIASES = {
    "name": "name",
    "arrival": "arrival_time",
    "burst": "burst_time",
    "priority": "priority",
    "color": "color",
}


class ManualTerminal:
    def __init__(self, engine: Optional[SimulationEngine] = None,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        colorama_init(autoreset=True)
        self.engine = engine or SimulationEngine(
            config=SimulationConfig(),
            ticker=BlockingTicker(sleep=sleep),
        )
        self._last_echoed: Optional[int] = None
        self.engine.subscribe(self._print_tick)

    def prompt(self) -> None:
        print(Fore.CYAN + "CPU scheduling simulator. Type 'help' for commands.")
        while True:
            try:
                raw = input(Fore.GREEN + "> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not raw.strip():
                continue
            self.handle_command(raw)

    def handle_command(self, raw: str) -> None:
        try:
            parts = shlex.split(raw)
        except ValueError as e:
            print(Fore.RED + f"Parse error: {e}")
            return
        if not parts:
            return
        cmd, *args = parts
        cmd = cmd.lower()
        handlers = {
            "help": self._help,
            "add": self._add,
            "edit": self._edit,
            "del": self._delete,
            "list": self._list,
            "algo": self._algo,
            "quantum": self._quantum,
            "step": self._step,
            "run": self._run,
            "finish": self._finish,
            "reset": self._reset,
            "status": self._status,
            "gantt": self._gantt,
            "stats": self._stats,
            "log": self._log,
        }
        if cmd in ("exit", "quit"):
            raise SystemExit(0)
        handler = handlers.get(cmd)
        if handler is None:
            print(Fore.YELLOW + "Unknown command. Type 'help'.")
            return
        try:
            handler(args)
        except (ValueError, KeyError) as e:
            message = e.args[0] if e.args else str(e)
            print(Fore.RED + f"Error: {message}")

    def _help(self, args: List[str]) -> None:
        print("Commands:")
        print("  add <burst> [arrival=0] [priority=1] [name]")
        print("  edit <pid> name|arrival|burst|priority|color <value>")
        print("  del <pid>")
        print("  list")
        print("  algo FCFS|SJF|SRT|Priority|HRN|RR")
        print("  quantum <Q>")
        print("  step [n]")
        print("  run [--interval MS]      auto-advance until every process finishes")
        print("  finish                   run to completion without delay")
        print("  reset")
        print("  status")
        print("  gantt [--out path]")
        print("  stats")
        print("  log")
        print("  exit")

    def _add(self, args: List[str]) -> None:
        if not args:
            print(Fore.RED + "Usage: add <burst> [arrival] [priority] [name]")
            return
        burst = int(args[0])
        arrival = int(args[1]) if len(args) >= 2 else 0
        priority = int(args[2]) if len(args) >= 3 else 1
        name = args[3] if len(args) >= 4 else None
        p = self.engine.add_process(arrival_time=arrival, burst_time=burst, priority=priority, name=name)
        print(Fore.CYAN + f"Process {p.name} added: burst={p.burst_time}, priority={p.priority}, arrival={p.arrival_time}")

    def _edit(self, args: List[str]) -> None:
        if len(args) != 3:
            print(Fore.RED + "Usage: edit <pid> <field> <value>")
            return
        pid = int(args[0])
        field_name = FIELD_ALIASES.get(args[1].lower())
        if field_name is None:
            raise ValueError(f"unknown field {args[1]!r}")
        value = args[2] if field_name in ("name", "color") else int(args[2])
        p = self.engine.update_process(pid, **{field_name: value})
        print(Fore.CYAN + f"Process {p.name} updated")

    def _delete(self, args: List[str]) -> None:
        if len(args) != 1:
            print(Fore.RED + "Usage: del <pid>")
            return
        p = self.engine.remove_process(int(args[0]))
        print(Fore.CYAN + f"Process {p.name} removed")

    def _list(self, args: List[str]) -> None:
        procs = self.engine.processes
        if not procs:
            print("No processes yet")
            return
        state = self.engine.state
        show_ratio = self.engine.algorithm is Algorithm.HRN
        for p in procs:
            remaining = state.remaining_for(p)
            line = (f"{p.pid:>3} {p.name}: arrival={p.arrival_time}, burst={p.burst_time}, "
                    f"priority={p.priority}, remaining={remaining}, status={state.status_of(p.pid).value}")
            if show_ratio:
                ratio = response_ratio(p, state.current_time)
                line += f", ratio={ratio:.2f}" if p.arrival_time <= state.current_time and remaining > 0 else ", ratio=-"
            print(line)

    def _algo(self, args: List[str]) -> None:
        if len(args) != 1:
            print(f"Algorithm: {self.engine.algorithm.value}")
            return
        self.engine.set_algorithm(args[0])
        print(Fore.CYAN + f"Algorithm set to {self.engine.algorithm.value}")

    def _quantum(self, args: List[str]) -> None:
        if len(args) != 1:
            print(f"Quantum: {self.engine.config.quantum}")
            return
        self.engine.set_quantum(int(args[0]))
        print(Fore.CYAN + f"Quantum set to {self.engine.config.quantum}")

    def _step(self, args: List[str]) -> None:
        count = int(args[0]) if args else 1
        for _ in range(count):
            if self.engine.is_finished:
                print(Fore.YELLOW + "All processes have completed.")
                break
            self.engine.step()
        self._status([])

    def _run(self, args: List[str]) -> None:
        it = iter(args)
        for token in it:
            if token == "--interval":
                value = next(it, None)
                if value is None:
                    raise ValueError("--interval needs a value in milliseconds")
                self.engine.set_tick_interval(int(value))
        if self.engine.is_finished:
            print(Fore.YELLOW + "All processes have completed. Use 'reset' to run again.")
            return
        self._last_echoed = self.engine.state.current_time
        self.engine.start()
        if not self.engine.is_running:
            print(Style.BRIGHT + f"Simulation stopped at t={self.engine.state.current_time}")

    def _print_tick(self, state) -> None:
        # only echo ticks committed while auto-running
        if not state.running or state.current_time == self._last_echoed or not state.timeline:
            return
        self._last_echoed = state.current_time
        print(f"t={state.current_time - 1:>3}  {state.timeline[-1].label}")

    def _finish(self, args: List[str]) -> None:
        state = self.engine.run_to_completion()
        print(Style.BRIGHT + f"Simulation finished at t={state.current_time}")

    def _reset(self, args: List[str]) -> None:
        self.engine.reset()
        print(Fore.CYAN + "Simulation reset")

    def _status(self, args: List[str]) -> None:
        state = self.engine.state
        names = {p.pid: p.name for p in self.engine.processes}
        current = names.get(state.current_pid, "None")
        queue = ", ".join(names[pid] for pid in state.ready_queue if pid in names)
        line = f"t={state.current_time}  running={current}  ready=[{queue}]"
        if self.engine.algorithm is Algorithm.RR:
            line += f"  quantum left={state.quantum_remaining}"
        print(line)

    def _gantt(self, args: List[str]) -> None:
        timeline = self.engine.state.timeline
        print(format_gantt(timeline))
        it = iter(args)
        for token in it:
            if token == "--out":
                out_path = next(it, None)
                if out_path:
                    plot_gantt(timeline, self.engine.logger, out_path,
                               title=f"Gantt Chart ({self.engine.algorithm.value})")
                    print(Fore.CYAN + f"Saved plot to {out_path}")

    def _stats(self, args: List[str]) -> None:
        stats = self.engine.statistics()
        if not stats.processes:
            print("No process has completed yet")
            return
        print(f"{'Process':<8}{'Arrival':>8}{'Burst':>7}{'Finish':>8}{'TAT':>6}{'Wait':>6}{'Resp':>6}")
        for row in stats.processes:
            print(f"{row.name:<8}{row.arrival_time:>8}{row.burst_time:>7}{row.completion_time:>8}"
                  f"{row.turnaround_time:>6}{row.waiting_time:>6}{row.response_time:>6}")
        print(Style.BRIGHT + f"Avg turnaround: {stats.avg_turnaround_time:.2f} | Avg waiting: {stats.avg_waiting_time:.2f}")
        print(f"Avg response: {stats.avg_response_time:.2f} | Throughput: {stats.throughput:.3f} | "
              f"CPU utilization: {stats.cpu_utilization:.1f}%")

    def _log(self, args: List[str]) -> None:
        logger = self.engine.logger
        if not logger.process_events and not logger.policy_switches:
            print("Event log is empty")
            return
        for sw in logger.policy_switches:
            print(Fore.MAGENTA + f"t={sw['time']}: {sw['from']} -> {sw['to']} ({sw['reason']})")
        for ev in logger.process_events:
            print(f"t={ev['time']}: {ev['pid'] or '-'} {ev['event']}")


def main() -> None:
    ManualTerminal().prompt()


if __name__ == "__main__":
    main()
