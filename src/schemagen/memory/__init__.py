"""Decision Memory: subject-scoped answers that survive across versions."""

from schemagen.memory.legacy import migrate_legacy_data
from schemagen.memory.store import DecisionMemory

__all__ = ["DecisionMemory", "migrate_legacy_data"]
