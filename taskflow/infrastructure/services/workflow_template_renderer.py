"""Workflow message templates: template key -> subject/body (Jinja).

Used for owner notifications after a run and for send_email actions that
name a template. Action text itself uses {{token}} substitution, which runs
before rendering, so templates receive already-substituted values.
"""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, Template

# Context: workflow (name, id), execution (status, executed_actions, error_message),
# subject/content (send_email), data (free-form extra values)
_DEFAULT_TEMPLATES: dict[str, tuple[str, str]] = {
    "workflow_executed": (
        'Workflow "{{ workflow.name }}" executed',
        'Workflow "{{ workflow.name }}" completed successfully '
        "({{ execution.executed_actions | length }} action(s)).",
    ),
    "workflow_failed": (
        'Workflow "{{ workflow.name }}" failed',
        'Workflow "{{ workflow.name }}" failed: {{ execution.error_message or "unknown error" }}',
    ),
    "workflow_partial": (
        'Workflow "{{ workflow.name }}" partially executed',
        'Workflow "{{ workflow.name }}" completed with errors: '
        '{{ execution.error_message or "unknown error" }}',
    ),
    "basic": (
        "{{ subject }}",
        "{{ content }}",
    ),
    "task_reminder": (
        "Reminder: {{ subject }}",
        "{{ content }}\n\n-- Sent automatically by workflow \"{{ workflow.name }}\"",
    ),
}


class WorkflowTemplateRenderer:
    """Renders subject and body for a template key."""

    def __init__(
        self,
        templates: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        """Initialize with optional template dict; falls back to _DEFAULT_TEMPLATES."""
        self._templates = templates or _DEFAULT_TEMPLATES
        self._env = Environment(autoescape=False, undefined=StrictUndefined)
        self._compiled: dict[str, tuple[Template, Template]] = {}
        for key, (sub_str, body_str) in self._templates.items():
            self._compiled[key] = (
                self._env.from_string(sub_str),
                self._env.from_string(body_str),
            )

    def has_template(self, template_key: str) -> bool:
        return template_key in self._compiled

    def render(self, template_key: str, **context: Any) -> tuple[str, str]:
        """Render subject and body for the template key. Raises KeyError if key unknown."""
        if template_key not in self._compiled:
            raise KeyError(f"Unknown workflow template: {template_key}")
        subject_tpl, body_tpl = self._compiled[template_key]
        return subject_tpl.render(**context), body_tpl.render(**context)
