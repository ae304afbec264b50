"""
Pomo App - Pomodoro Session Tracking Engine

Tracks focused work intervals ("pomodoros") grouped into tasks. Runs
intervals one at a time with pause, resume and break acknowledgment,
persists every completed interval and reports each state change to
configured hooks and notifiers.
"""

__version__ = "0.1.0"
__author__ = "Pomo Team"
