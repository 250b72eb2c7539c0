"""Primary key generation for engine-written rows (executions, tasks, notifications)."""

from cuid2 import Cuid

# Default CUID2 length; fits every String primary key column
CUID_LENGTH = 24

_generator = Cuid(length=CUID_LENGTH)


def generate_cuid() -> str:
    """Return a new collision-resistant id (CUID2, lowercase, starts with a letter)."""
    return _generator.generate()
