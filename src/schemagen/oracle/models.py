"""Question/answer vocabulary shared by the miners and every oracle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol


class QuestionKind(StrEnum):
    TABLE_PREFIX = "table_prefix"
    INFO = "info"
    KEEP_EXISTING = "keep_existing"
    KEEP_REMOVED = "keep_removed"
    META_HAS_IDS = "meta_has_ids"
    META_KEY_TRANSLATION = "meta_key_translation"
    META_VALUE_KIND = "meta_value_kind"
    META_TARGET_TABLE = "meta_target_table"
    SERIALIZED_KEY = "serialized_key"
    SERIALIZED_VALUE = "serialized_value"
    SHORTCODE_ATTRIBUTES = "shortcode_attributes"


class Answer:
    """Canonical answer strings for multiple-choice questions."""

    YES = "yes"
    NO = "no"
    DEFER = "defer"
    STOP = "stop"
    KEEP = "keep"
    EDIT = "edit"
    DROP = "drop"
    SIMPLE = "simple"
    SERIALIZED = "serialized"


HAS_IDS_CHOICES = (Answer.YES, Answer.NO, Answer.DEFER, Answer.STOP)
KEEP_EXISTING_CHOICES = (Answer.KEEP, Answer.EDIT, Answer.STOP)
KEEP_REMOVED_CHOICES = (Answer.KEEP, Answer.DROP, Answer.STOP)
VALUE_KIND_CHOICES = (Answer.SIMPLE, Answer.SERIALIZED)


@dataclass(frozen=True)
class Question:
    """One prompt.

    ``choices`` empty means free text. ``ref`` identifies the element being
    asked about (``"postmeta:_thumbnail_id"``, ``"gallery"``) so scripted
    oracles can answer by element. ``default`` is the answer used when the
    policy skips prompts.
    """

    kind: QuestionKind
    text: str
    ref: str = ""
    choices: tuple[str, ...] = ()
    default: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class OraclePolicy:
    """How undecided items are handled for a run.

    headless: any question that would be asked is a fatal error.
    skip_all: never ask; questions resolve to their default (defer new
        items, keep existing ones).
    """

    headless: bool = False
    skip_all: bool = False

    @property
    def interactive(self) -> bool:
        return not (self.headless or self.skip_all)


class Oracle(Protocol):
    """A decision maker answering one question at a time."""

    def ask(self, question: Question) -> str: ...
