"""
Task data module.

Immutable task and interval models, parsers for user-supplied task
parameters and filters for selecting stored tasks.
"""
from .filters import apply_filters, filters_from_strings
from .models import Interval, Project, Tags, Task
from .parsers import parse_duration, parse_project_json, parse_tags

__all__ = [
    "Interval",
    "Project",
    "Tags",
    "Task",
    "apply_filters",
    "filters_from_strings",
    "parse_duration",
    "parse_project_json",
    "parse_tags",
]
