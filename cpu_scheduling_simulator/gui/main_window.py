"""
Main window for the CPU scheduling simulator GUI.
"""

from typing import List, Optional
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QPushButton, QComboBox, QSpinBox, QLineEdit,
    QTableWidget, QTableWidgetItem, QHeaderView,
    QDialog, QFrame, QMessageBox
)
from PyQt6.QtCore import Qt, QTimer, QRect
from PyQt6.QtGui import QPainter, QColor, QPen, QBrush

from ..backend.core import Algorithm, Process, ProcessState, SimulationState, TimelineEntry
from ..backend.engine import SimulationConfig, SimulationEngine
from ..backend.schedulers import response_ratio
from ..backend.ticker import Ticker, TickCallback


ALGORITHM_LABELS = {
    Algorithm.FCFS: "FCFS (First Come First Served)",
    Algorithm.SJF: "SJF (Shortest Job First)",
    Algorithm.SRT: "SRT (Shortest Remaining Time)",
    Algorithm.PRIORITY: "Priority Scheduling",
    Algorithm.HRN: "HRN (Highest Response Ratio Next)",
    Algorithm.RR: "RR (Round Robin)",
}

ALGORITHM_HELP = {
    Algorithm.FCFS: "Runs processes in arrival order. Non-preemptive.",
    Algorithm.SJF: "Runs the process with the shortest burst first. Non-preemptive.",
    Algorithm.SRT: "Runs the process with the least remaining time. Preemptive.",
    Algorithm.PRIORITY: "Runs the highest priority (lowest number) process first. Non-preemptive.",
    Algorithm.HRN: "Runs the process with the highest response ratio, (waiting + burst) / burst.",
    Algorithm.RR: "Gives every process the same time quantum in turn.",
}

STATUS_LABELS = {
    ProcessState.NEW: "Not arrived",
    ProcessState.READY: "Waiting",
    ProcessState.RUNNING: "Running",
    ProcessState.TERMINATED: "Done",
}


class QTimerTicker(Ticker):
    """Ticker backed by a QTimer on the GUI event loop."""

    def __init__(self, parent=None):
        self._timer = QTimer(parent)
        self._callback: Optional[TickCallback] = None
        self._timer.timeout.connect(self._fire)

    def _fire(self) -> None:
        if self._callback is not None:
            self._callback()

    def start(self, interval_ms: int, callback: TickCallback) -> None:
        self._callback = callback
        self._timer.start(interval_ms)

    def stop(self) -> None:
        self._timer.stop()

    @property
    def active(self) -> bool:
        return self._timer.isActive()


# Process creation / edit dialog
class ProcessDialog(QDialog):
    def __init__(self, parent=None, process: Optional[Process] = None):
        super().__init__(parent)
        self.setWindowTitle("Edit Process" if process else "Add Process")
        layout = QVBoxLayout(self)

        self.name = QLineEdit(process.name if process else "")
        self.name.setPlaceholderText("auto")
        self.arrival_time = QSpinBox()
        self.arrival_time.setRange(0, 999)
        self.burst_time = QSpinBox()
        self.burst_time.setRange(1, 999)
        self.burst_time.setValue(3)
        self.priority = QSpinBox()
        self.priority.setRange(0, 99)
        self.priority.setValue(1)
        if process is not None:
            self.arrival_time.setValue(process.arrival_time)
            self.burst_time.setValue(process.burst_time)
            self.priority.setValue(process.priority)

        for label, widget in (("Name:", self.name), ("Arrival Time:", self.arrival_time),
                              ("Burst Time:", self.burst_time), ("Priority:", self.priority)):
            row = QHBoxLayout()
            row.addWidget(QLabel(label))
            row.addWidget(widget)
            layout.addLayout(row)

        # OK/Cancel buttons
        button_layout = QHBoxLayout()
        self.ok_button = QPushButton("OK")
        self.ok_button.clicked.connect(self.accept)
        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.clicked.connect(self.reject)
        button_layout.addWidget(self.ok_button)
        button_layout.addWidget(self.cancel_button)
        layout.addLayout(button_layout)


class ProcessTable(QTableWidget):
    COLUMNS = ["PID", "Name", "Arrival", "Burst", "Priority", "Remaining", "Response Ratio", "Status"]

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setColumnCount(len(self.COLUMNS))
        self.setHorizontalHeaderLabels(self.COLUMNS)
        header = self.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        header.setStretchLastSection(True)
        self.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.verticalHeader().setVisible(False)
        self.setAlternatingRowColors(True)

    def _set_item(self, row: int, column: int, text: str) -> None:
        item = self.item(row, column)
        if item is None:
            self.setItem(row, column, QTableWidgetItem(text))
        else:
            item.setText(text)

    def refresh(self, processes: List[Process], state: SimulationState, algorithm: Algorithm) -> None:
        self.setRowCount(len(processes))
        for row, p in enumerate(processes):
            remaining = state.remaining_for(p)
            self._set_item(row, 0, str(p.pid))
            self._set_item(row, 1, p.name)
            self.item(row, 1).setBackground(QBrush(QColor(p.color)))
            self._set_item(row, 2, str(p.arrival_time))
            self._set_item(row, 3, str(p.burst_time))
            self._set_item(row, 4, str(p.priority))
            self._set_item(row, 5, str(remaining))
            ratio = "-"
            if algorithm is Algorithm.HRN and p.arrival_time <= state.current_time and remaining > 0:
                ratio = f"{response_ratio(p, state.current_time):.2f}"
            self._set_item(row, 6, ratio)
            self._set_item(row, 7, STATUS_LABELS[state.status_of(p.pid)])

    def selected_pid(self) -> Optional[int]:
        row = self.currentRow()
        if row < 0 or self.item(row, 0) is None:
            return None
        return int(self.item(row, 0).text())


class StatisticsTable(QTableWidget):
    COLUMNS = ["Process", "Arrival", "Burst", "Completion", "Turnaround", "Waiting", "Response"]

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setColumnCount(len(self.COLUMNS))
        self.setHorizontalHeaderLabels(self.COLUMNS)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.verticalHeader().setVisible(False)

    def refresh(self, stats) -> None:
        self.setRowCount(len(stats.processes))
        for row, s in enumerate(stats.processes):
            values = [s.name, s.arrival_time, s.burst_time, s.completion_time,
                      s.turnaround_time, s.waiting_time, s.response_time]
            for col, value in enumerate(values):
                self.setItem(row, col, QTableWidgetItem("-" if value is None else str(value)))


class StatCard(QFrame):
    """Compact metric card component."""

    def __init__(self, title: str, formatter=None, parent=None):
        super().__init__(parent)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 8)
        self.title_label = QLabel(title.upper())
        self.title_label.setStyleSheet("color:#7486a8;font-size:12px;font-weight:600;")
        self.value_label = QLabel("-")
        self.value_label.setStyleSheet("color:#0b2447;font-size:18px;font-weight:700;")
        layout.addWidget(self.title_label)
        layout.addWidget(self.value_label)
        self.formatter = formatter or (lambda v: f"{v:.2f}")

    def update_value(self, value) -> None:
        self.value_label.setText(self.formatter(value))


# Gantt chart visualization
class GanttChart(QWidget):
    CELL_WIDTH = 40
    BAR_HEIGHT = 40

    def __init__(self, parent=None):
        super().__init__(parent)
        self.timeline: List[TimelineEntry] = []
        self.setMinimumHeight(90)

    def set_timeline(self, timeline: List[TimelineEntry]) -> None:
        self.timeline = list(timeline)
        end = self.timeline[-1].end if self.timeline else 0
        self.setMinimumWidth(20 + end * self.CELL_WIDTH + 40)
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        left = 10
        top = 10
        for entry in self.timeline:
            rect = QRect(left + entry.start * self.CELL_WIDTH, top,
                         entry.duration * self.CELL_WIDTH, self.BAR_HEIGHT)
            painter.setBrush(QBrush(QColor(entry.color)))
            painter.setPen(QPen(QColor("#555555")))
            painter.drawRect(rect)
            painter.setPen(QPen(QColor("#1f2937") if entry.is_idle else QColor("#ffffff")))
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, entry.label)
            painter.setPen(QPen(QColor("#666666")))
            painter.drawText(rect.left() - 4, top + self.BAR_HEIGHT + 16, str(entry.start))
        if self.timeline:
            end = self.timeline[-1].end
            painter.drawText(left + end * self.CELL_WIDTH - 4, top + self.BAR_HEIGHT + 16, str(end))


class MainWindow(QMainWindow):
    def __init__(self, engine: Optional[SimulationEngine] = None):
        super().__init__()
        self.setWindowTitle("CPU Scheduling Simulator")
        self.setMinimumSize(1000, 760)

        self.engine = engine or SimulationEngine(config=SimulationConfig(), ticker=QTimerTicker(self))

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(18, 18, 18, 18)
        main_layout.setSpacing(12)

        title_label = QLabel("CPU Scheduling Simulator")
        title_label.setStyleSheet("font-size:26px;font-weight:800;color:#0b2447;")
        main_layout.addWidget(title_label)

        # Algorithm selection
        control_layout = QHBoxLayout()
        self.algorithm_combo = QComboBox()
        for algo, label in ALGORITHM_LABELS.items():
            self.algorithm_combo.addItem(label, algo)
        self.quantum_label = QLabel("Time Quantum")
        self.quantum_spin = QSpinBox()
        self.quantum_spin.setRange(1, 99)
        self.quantum_spin.setValue(self.engine.config.quantum)
        control_layout.addWidget(QLabel("Algorithm"))
        control_layout.addWidget(self.algorithm_combo)
        control_layout.addWidget(self.quantum_label)
        control_layout.addWidget(self.quantum_spin)
        control_layout.addStretch(1)
        main_layout.addLayout(control_layout)

        self.help_label = QLabel("")
        self.help_label.setStyleSheet("background:#fefce8;padding:8px;border-radius:6px;")
        main_layout.addWidget(self.help_label)

        # Process management
        process_buttons = QHBoxLayout()
        self.add_process_button = QPushButton("Add Process")
        self.edit_process_button = QPushButton("Edit Process")
        self.delete_process_button = QPushButton("Delete Process")
        process_buttons.addWidget(QLabel("Processes"))
        process_buttons.addStretch(1)
        process_buttons.addWidget(self.add_process_button)
        process_buttons.addWidget(self.edit_process_button)
        process_buttons.addWidget(self.delete_process_button)
        main_layout.addLayout(process_buttons)

        self.process_table = ProcessTable()
        main_layout.addWidget(self.process_table, stretch=2)

        # Simulation controls
        sim_buttons = QHBoxLayout()
        self.start_button = QPushButton("Start")
        self.step_button = QPushButton("Step")
        self.reset_button = QPushButton("Reset")
        sim_buttons.addWidget(self.start_button)
        sim_buttons.addWidget(self.step_button)
        sim_buttons.addWidget(self.reset_button)
        sim_buttons.addStretch(1)
        main_layout.addLayout(sim_buttons)

        status_grid = QGridLayout()
        self.time_label = QLabel()
        self.running_label = QLabel()
        self.queue_label = QLabel()
        self.quantum_left_label = QLabel()
        status_grid.addWidget(self.time_label, 0, 0)
        status_grid.addWidget(self.running_label, 0, 1)
        status_grid.addWidget(self.queue_label, 0, 2)
        status_grid.addWidget(self.quantum_left_label, 0, 3)
        main_layout.addLayout(status_grid)

        self.gantt_chart = GanttChart()
        main_layout.addWidget(self.gantt_chart)

        self.statistics_table = StatisticsTable()
        main_layout.addWidget(self.statistics_table, stretch=1)

        card_row = QHBoxLayout()
        self.cards = {
            "turnaround": StatCard("Avg Turnaround"),
            "waiting": StatCard("Avg Waiting"),
            "response": StatCard("Avg Response"),
            "utilization": StatCard("CPU Utilization", lambda v: f"{v:.1f} %"),
        }
        for card in self.cards.values():
            card_row.addWidget(card)
        main_layout.addLayout(card_row)

        # Connect signals
        self.algorithm_combo.currentIndexChanged.connect(self.on_algorithm_changed)
        self.quantum_spin.valueChanged.connect(self.engine.set_quantum)
        self.add_process_button.clicked.connect(self.show_add_process_dialog)
        self.edit_process_button.clicked.connect(self.show_edit_process_dialog)
        self.delete_process_button.clicked.connect(self.delete_selected_process)
        self.start_button.clicked.connect(self.toggle_running)
        self.step_button.clicked.connect(self.step_simulation)
        self.reset_button.clicked.connect(self.engine.reset)

        self.engine.subscribe(self.refresh)
        self.algorithm_combo.setCurrentIndex(list(ALGORITHM_LABELS).index(self.engine.algorithm))
        self.refresh(self.engine.state)

    def on_algorithm_changed(self, index: int) -> None:
        self.engine.set_algorithm(self.algorithm_combo.itemData(index))
        self.refresh(self.engine.state)

    def show_add_process_dialog(self) -> None:
        dialog = ProcessDialog(self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            try:
                self.engine.add_process(
                    arrival_time=dialog.arrival_time.value(),
                    burst_time=dialog.burst_time.value(),
                    priority=dialog.priority.value(),
                    name=dialog.name.text().strip() or None,
                )
            except ValueError as e:
                QMessageBox.warning(self, "Invalid process", str(e))

    def show_edit_process_dialog(self) -> None:
        pid = self.process_table.selected_pid()
        if pid is None:
            return
        dialog = ProcessDialog(self, self.engine.get_process(pid))
        if dialog.exec() == QDialog.DialogCode.Accepted:
            try:
                self.engine.update_process(
                    pid,
                    name=dialog.name.text().strip() or self.engine.get_process(pid).name,
                    arrival_time=dialog.arrival_time.value(),
                    burst_time=dialog.burst_time.value(),
                    priority=dialog.priority.value(),
                )
            except ValueError as e:
                QMessageBox.warning(self, "Invalid process", str(e))

    def delete_selected_process(self) -> None:
        pid = self.process_table.selected_pid()
        if pid is not None:
            self.engine.remove_process(pid)

    def toggle_running(self) -> None:
        if self.engine.is_running:
            self.engine.pause()
        else:
            self.engine.start()

    def step_simulation(self) -> None:
        if not self.engine.is_finished:
            self.engine.step()

    def refresh(self, state: SimulationState) -> None:
        algorithm = self.engine.algorithm
        processes = self.engine.processes
        names = {p.pid: p.name for p in processes}

        self.help_label.setText(f"{algorithm.value}: {ALGORITHM_HELP[algorithm]}")
        is_rr = algorithm is Algorithm.RR
        self.quantum_label.setVisible(is_rr)
        self.quantum_spin.setVisible(is_rr)
        self.quantum_left_label.setVisible(is_rr)

        self.process_table.refresh(processes, state, algorithm)
        self.start_button.setText("Pause" if state.running else "Start")
        self.step_button.setEnabled(not state.running)

        self.time_label.setText(f"Current time: {state.current_time}")
        self.running_label.setText(f"Running: {names.get(state.current_pid, 'None')}")
        queue = ", ".join(names[pid] for pid in state.ready_queue if pid in names)
        self.queue_label.setText(f"Ready queue: [{queue}]")
        self.quantum_left_label.setText(f"Quantum left: {state.quantum_remaining}")

        self.gantt_chart.set_timeline(state.timeline)

        stats = self.engine.statistics()
        self.statistics_table.refresh(stats)
        self.cards["turnaround"].update_value(stats.avg_turnaround_time)
        self.cards["waiting"].update_value(stats.avg_waiting_time)
        self.cards["response"].update_value(stats.avg_response_time)
        self.cards["utilization"].update_value(stats.cpu_utilization)
