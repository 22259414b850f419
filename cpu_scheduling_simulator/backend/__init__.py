"""
Scheduling engine: selector, step simulator, engine object and helpers.
"""

from .core import Algorithm, Process, ProcessState, SimulationState, TimelineEntry
from .engine import SimulationConfig, SimulationEngine
from .schedulers import select_next
from .simulator import advance

__all__ = [
    'Algorithm', 'Process', 'ProcessState', 'SimulationState', 'TimelineEntry',
    'SimulationConfig', 'SimulationEngine', 'select_next', 'advance',
]
