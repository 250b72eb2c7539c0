"""DTOs for user profiles (no dependency on ORM)."""

from dataclasses import dataclass

from taskflow.core.constants import UNKNOWN_USER_NAME


@dataclass(frozen=True)
class UserProfile:
    """User profile read-model. Only name and e-mail are used by the engine."""

    id: str
    full_name: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        """Full name, else e-mail, else a placeholder."""
        return self.full_name or self.email or UNKNOWN_USER_NAME
