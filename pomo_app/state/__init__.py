"""
Session state machine module.

Drives a task through CREATED → RUNNING ⇄ PAUSED → BREAKING → RUNNING …
→ COMPLETE on a background thread, persisting each completed interval.
"""
