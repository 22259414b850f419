"""
Step-by-step CPU scheduling simulator (FCFS, SJF, SRT, Priority, HRN, Round Robin).
"""

__version__ = "0.1.0"
