"""Non-interactive oracle answering from a prepared script.

Script format (YAML or a plain dict)::

    meta_has_ids:
      "postmeta:_thumbnail_id": "yes"
      "*": "no"
    meta_target_table:
      "postmeta:_thumbnail_id": posts
    shortcode_attributes:
      gallery: "ids:posts"

Answers are looked up by question kind, then by the question's ``ref``, then
by ``"*"``. A list value is consumed one answer per question, which lets a
script answer the same element differently across runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from schemagen.core.errors import ConfigError, OracleError
from schemagen.oracle.models import Question


class ScriptedOracle:
    """Answers from a script, recording every question asked."""

    def __init__(self, script: dict[str, dict[str, Any]] | None = None) -> None:
        self.script: dict[str, dict[str, Any]] = {
            str(kind): dict(answers) for kind, answers in (script or {}).items()
        }
        self.asked: list[Question] = []

    def ask(self, question: Question) -> str:
        self.asked.append(question)
        answers = self.script.get(question.kind.value, {})
        for key in (question.ref, "*"):
            if key not in answers:
                continue
            value = answers[key]
            if isinstance(value, list):
                if not value:
                    continue
                return str(value.pop(0))
            return str(value)
        if question.default is not None:
            return question.default
        raise OracleError.headless(question.kind.value, question.text)

    def refs(self, kind: str | None = None) -> list[str]:
        """Refs of the questions asked so far, optionally for one kind."""
        return [q.ref for q in self.asked if kind is None or q.kind.value == kind]

    @classmethod
    def load(cls, path: Path) -> ScriptedOracle:
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError.parse_error(str(path), str(e)) from e
        if not isinstance(data, dict):
            raise ConfigError.parse_error(str(path), "answers file must be a mapping")
        return cls(data)
