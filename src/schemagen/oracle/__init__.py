"""Oracle: the collaborator that settles ambiguous findings."""

from schemagen.oracle.models import (
    Answer,
    Oracle,
    OraclePolicy,
    Question,
    QuestionKind,
)
from schemagen.oracle.scripted import ScriptedOracle
from schemagen.oracle.session import OracleSession

__all__ = [
    "Answer",
    "Oracle",
    "OraclePolicy",
    "OracleSession",
    "Question",
    "QuestionKind",
    "ScriptedOracle",
]
