"""Shortcodes whose attributes carry IDs.

Registrations come from the platform registry and from static
``add_shortcode(tag, callback)`` calls in the corpus; a static registration
wins over the registry for the same tag. Each callback is located and its
body searched for the attributes it reads.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from schemagen.core.progress import progress
from schemagen.corpus.catalog import RegistryCallback
from schemagen.corpus.models import SourceFile, line_of
from schemagen.inference.callbacks import (
    CallbackLocator,
    CallbackRef,
    callback_from_registry,
    enclosing_class,
    parse_callback_expression,
)
from schemagen.inference.expressions import (
    extract_call_arguments,
    is_definition,
    is_string_literal,
    split_arguments,
    unquote,
)
from schemagen.inference.scan import first_wins, scan_files
from schemagen.memory.store import DecisionMemory
from schemagen.oracle.models import KEEP_EXISTING_CHOICES, Answer, Question, QuestionKind
from schemagen.oracle.session import OracleSession
from schemagen.schema.models import Parameter, Schema, ShortcodeParameter, ShortcodeRecord

log = structlog.get_logger(__name__)

_ADD_SHORTCODE = re.compile(r"(?<![\w>:$])add_shortcode\s*\(", re.IGNORECASE)
_EXTRACT = re.compile(r"(?<![\w>:$])extract\s*\(", re.IGNORECASE)

DEFER_ANSWER = "?"
NOT_IDS_ANSWERS = frozenset({"", "n", "no"})


@dataclass(frozen=True, slots=True)
class Registration:
    tag: str
    callback: CallbackRef
    file: str
    line: int


@dataclass(frozen=True, slots=True)
class ShortcodeCandidate:
    """A shortcode whose callback reads its attributes.

    ``attributes`` is None when the callback ``extract()``s them, so the
    names cannot be listed.
    """

    tag: str
    callback: str
    attributes: tuple[str, ...] | None
    file: str
    line: int
    code: str

    @property
    def context(self) -> dict[str, object]:
        return {"file": self.file, "line": self.line, "code": self.code}


@dataclass
class ShortcodeResolution:
    shortcodes: dict[str, ShortcodeRecord] = field(default_factory=dict)
    dropped: set[str] = field(default_factory=set)
    discovered: set[str] = field(default_factory=set)


# --- discovery -------------------------------------------------------------------


def scan_registrations(file: SourceFile) -> list[tuple[str, Registration]]:
    """Static ``add_shortcode`` calls with a literal tag."""
    if "add_shortcode" not in file.lower():
        return []

    text = file.text()
    found: list[tuple[str, Registration]] = []
    for match in _ADD_SHORTCODE.finditer(text):
        if is_definition(text, match.start()):
            continue
        raw = extract_call_arguments(text, match.end() - 1)
        if raw is None:
            continue
        args = split_arguments(raw)
        if len(args) < 2:
            continue

        tag_expr = args[0]
        # Dynamic tags are expected in the platform registry
        if not is_string_literal(tag_expr) or "$" in tag_expr or "::" in tag_expr:
            continue
        tag = unquote(tag_expr)
        ref = parse_callback_expression(args[1], enclosing_class(text, match.start()))
        if not tag or ref is None:
            log.debug("shortcode_registration_skipped", file=file.rel_path, callback=args[1][:80])
            continue
        line = line_of(text, match.start())
        found.append((tag, Registration(tag, ref, file.rel_path, line)))
    return found


def callback_attributes(code: str, param: str) -> tuple[bool, list[str]]:
    """Whether the body ``extract()``s, and the literal keys read from ``param``."""
    subscript = re.compile(rf"{re.escape(param)}\s*\[\s*(['\"])(.*?)\1\s*\]")
    names: list[str] = []
    for match in subscript.finditer(code):
        name = match.group(2)
        if name and "$" not in name and name not in names:
            names.append(name)
    return bool(_EXTRACT.search(code)), names


def discover_shortcode_candidates(
    files: Sequence[SourceFile],
    registry: Mapping[str, RegistryCallback],
    *,
    workers: int = 1,
) -> dict[str, ShortcodeCandidate]:
    """Shortcodes whose callback, found in the corpus, reads attributes."""
    callbacks: dict[str, tuple[CallbackRef, str | None]] = {}
    for tag, callback in registry.items():
        ref = callback_from_registry(callback)
        if ref is not None:
            callbacks[tag] = (ref, None)
    for tag, reg in first_wins(scan_files(files, scan_registrations, workers)).items():
        callbacks[tag] = (reg.callback, reg.file)

    locator = CallbackLocator(files)
    candidates: dict[str, ShortcodeCandidate] = {}
    for tag in progress(sorted(callbacks), desc="Locating shortcode callbacks", unit="shortcodes"):
        ref, near = callbacks[tag]
        source = locator.locate(ref, near)
        if source is None or not source.first_param:
            continue

        uses_extract, names = callback_attributes(source.code, source.first_param)
        if not uses_extract and not names:
            continue
        candidates[tag] = ShortcodeCandidate(
            tag=tag,
            callback=ref.label,
            attributes=None if uses_extract else tuple(names),
            file=source.file,
            line=source.line,
            code=source.code,
        )

    log.info("shortcode_candidates_discovered", registered=len(callbacks), count=len(candidates))
    return candidates


# --- resolution ------------------------------------------------------------------


def parse_attribute_answer(answer: str) -> tuple[Parameter, ...]:
    """``"id, ids:posts"`` -> ``("id", ShortcodeParameter("ids", "posts"))``."""
    params: list[Parameter] = []
    for item in answer.split(","):
        name, _, table = (part.strip() for part in item.partition(":"))
        if not name:
            continue
        params.append(ShortcodeParameter(name=name, table=table) if table else name)
    return tuple(params)


class ShortcodeResolver:
    """Classifies shortcode candidates one at a time, like MetaResolver."""

    def __init__(
        self,
        prior: Schema,
        memory: DecisionMemory,
        session: OracleSession,
        *,
        from_scratch: bool = False,
    ) -> None:
        self.prior = prior
        self.memory = memory
        self.session = session
        self.from_scratch = from_scratch
        self.stopped = False

    def resolve(self, candidates: Mapping[str, ShortcodeCandidate]) -> ShortcodeResolution:
        result = ShortcodeResolution(discovered=set(candidates))
        for tag in sorted(candidates):
            if self.memory.is_shortcode_ignored(tag):
                continue
            candidate = candidates[tag]
            existing = None if self.from_scratch else self.prior.shortcodes.get(tag)

            if existing is not None:
                if self.stopped or not self._wants_edit(candidate, existing):
                    continue
            elif self.stopped:
                self.memory.ignore_shortcode(tag)
                continue

            answer = self._ask_attributes(candidate)
            if answer.lower() == Answer.STOP:
                self.stopped = True
                if existing is None:
                    self.memory.ignore_shortcode(tag)
                continue
            if answer == DEFER_ANSWER:
                continue

            params = () if answer.lower() in NOT_IDS_ANSWERS else parse_attribute_answer(answer)
            if not params:
                self.memory.ignore_shortcode(tag)
                if existing is not None:
                    result.dropped.add(tag)
                continue
            result.shortcodes[tag] = ShortcodeRecord(parameters=params)

        log.info("shortcode_candidates_resolved", count=len(result.shortcodes))
        return result

    def _wants_edit(self, candidate: ShortcodeCandidate, existing: ShortcodeRecord) -> bool:
        if not self.session.policy.interactive:
            return False
        answer = self.session.ask(
            Question(
                kind=QuestionKind.KEEP_EXISTING,
                text=f"[{candidate.tag}] is already recorded. Keep it or edit it?",
                ref=candidate.tag,
                choices=KEEP_EXISTING_CHOICES,
                default=Answer.KEEP,
                context={**candidate.context, "recorded": existing.to_dict()},
            )
        )
        if answer == Answer.STOP:
            self.stopped = True
        return answer == Answer.EDIT

    def _ask_attributes(self, candidate: ShortcodeCandidate) -> str:
        if candidate.attributes is None:
            found = "attributes are extract()ed, names unknown"
        else:
            found = "reads " + ", ".join(candidate.attributes)
        return self.session.ask(
            Question(
                kind=QuestionKind.SHORTCODE_ATTRIBUTES,
                text=(
                    f"Does [{candidate.tag}] ({found}) take ID attributes? "
                    "Answer attribute[:table], ... or n, ? to defer, stop"
                ),
                ref=candidate.tag,
                default=DEFER_ANSWER,
                context=candidate.context,
            )
        )
