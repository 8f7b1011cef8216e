"""Taskboard - task tracking with per-task access control and an audit trail."""

__version__ = "0.1.0"
