"""Domain layer: entities and exceptions. No infrastructure dependencies."""
