import os
import sys

import pytest

# Headless matplotlib for the plotting tests
os.environ.setdefault("MPLBACKEND", "Agg")


def pytest_sessionstart(session):
    # Ensure project root is on sys.path so the package can be imported
    here = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.abspath(os.path.join(here, os.pardir, os.pardir))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


@pytest.fixture
def seed_processes():
    """The built-in four process workload."""
    from cpu_scheduling_simulator.backend.core import default_processes
    return default_processes()
