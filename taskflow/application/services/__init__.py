"""Application services: substitution, trigger matching, schedule rules."""

from taskflow.application.services.entity_reader import EntityReader
from taskflow.application.services.trigger_matcher import TriggerMatcher
from taskflow.application.services.variable_substitution import (
    VariableSubstitution,
    parse_date_expression,
)

__all__ = [
    "EntityReader",
    "TriggerMatcher",
    "VariableSubstitution",
    "parse_date_expression",
]
