"""taskflow: workflow automation engine for project and task management."""

__version__ = "1.0.0"
