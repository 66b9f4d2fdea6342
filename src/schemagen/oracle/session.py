"""Policy-aware front door to an oracle."""

from __future__ import annotations

import structlog

from schemagen.core.errors import OracleError
from schemagen.oracle.models import Oracle, OraclePolicy, Question

log = structlog.get_logger(__name__)


class OracleSession:
    """Applies an OraclePolicy to every question before it reaches the oracle."""

    def __init__(self, oracle: Oracle, policy: OraclePolicy | None = None) -> None:
        self.oracle = oracle
        self.policy = policy or OraclePolicy()
        self.asked = 0

    @property
    def skipping(self) -> bool:
        """True when answers come from question defaults rather than the oracle."""
        return self.policy.skip_all

    def ask(self, question: Question) -> str:
        """Ask one question, returning a normalized answer.

        Raises:
            OracleError: Under a headless policy, or when a multiple-choice
                answer is not one of the choices.
        """
        if self.policy.skip_all and question.default is not None:
            return question.default

        if self.policy.headless or self.policy.skip_all:
            raise OracleError.headless(question.kind.value, question.text)

        self.asked += 1
        raw = self.oracle.ask(question)
        answer = (raw or "").strip()
        if question.choices:
            answer = answer.lower()
            if answer not in question.choices:
                raise OracleError.invalid_answer(question.kind.value, raw)

        log.debug("oracle_answer", kind=question.kind.value, ref=question.ref, answer=answer)
        return answer
