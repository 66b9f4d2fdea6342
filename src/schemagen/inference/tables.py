"""Table discovery from CREATE TABLE statements in the subject's source."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from schemagen.config.constants import TABLE_NAME_NOISE
from schemagen.corpus.models import SourceFile, TableIntrospector, TableMap
from schemagen.inference.scan import scan_files
from schemagen.memory.store import DecisionMemory
from schemagen.oracle.models import Question, QuestionKind
from schemagen.oracle.session import OracleSession

log = structlog.get_logger(__name__)

_CREATE_TABLE = re.compile(r"\bcreate\s+table\s+(?:if\s+not\s+exists\s+)?(\S+)")
_LITERAL_NAME = re.compile(r"^[a-z0-9_]+$")
_NON_LITERAL_MARKERS = ("$", "{", ".", '"')


@dataclass
class TableScan:
    """CREATE TABLE names found in one file."""

    literal: list[str] = field(default_factory=list)
    dynamic: list[str] = field(default_factory=list)


@dataclass
class TableDiscovery:
    tables: TableMap
    prefixes: list[str] = field(default_factory=list)
    dynamic_names: list[str] = field(default_factory=list)


def clean_table_name(raw: str) -> str:
    """Strip quoting, the ``$wpdb`` prefix and trailing punctuation from a captured name."""
    name = raw
    for noise in TABLE_NAME_NOISE:
        name = name.replace(noise, "")
    name = name.split("(", 1)[0]
    return name.rstrip(";,")


def is_dynamic_table_name(raw: str, cleaned: str) -> bool:
    """True when the name is assembled at run time (variable, concatenation)."""
    if any(marker in cleaned for marker in _NON_LITERAL_MARKERS):
        return True
    # "CREATE TABLE " . $table: the capture is only the closing quote
    return not cleaned and raw[:1] in ("'", '"')


def scan_table_names(file: SourceFile) -> TableScan:
    scan = TableScan()
    content = file.lower()
    if "create" not in content:
        return scan
    for match in _CREATE_TABLE.finditer(content):
        raw = match.group(1)
        name = clean_table_name(raw)
        if is_dynamic_table_name(raw, name):
            scan.dynamic.append(raw)
        elif _LITERAL_NAME.match(name):
            scan.literal.append(name)
    return scan


def parse_prefixes(answer: str) -> list[str]:
    return [p.strip() for p in answer.split(",") if p.strip()]


def ask_table_prefixes(
    memory: DecisionMemory, session: OracleSession, *, subject: str, example: str
) -> list[str]:
    """Custom table prefixes, asked once per subject and then remembered."""
    remembered = memory.table_prefixes
    if remembered is not None:
        return remembered

    answer = session.ask(
        Question(
            kind=QuestionKind.TABLE_PREFIX,
            text=(
                f"{subject} creates tables with run-time names (e.g. {example}). "
                "Enter its custom table prefixes, comma separated"
            ),
            ref=subject,
            default="",
        )
    )
    if not session.skipping:
        memory.remember_table_prefixes(answer)
    return parse_prefixes(answer)


def discover_tables(
    files: Sequence[SourceFile],
    introspector: TableIntrospector,
    memory: DecisionMemory,
    session: OracleSession,
    *,
    subject: str,
    ignored: Sequence[str] = (),
    workers: int = 1,
) -> TableDiscovery:
    """Resolve the subject's own tables against the live database."""
    names: list[str] = []
    dynamic: list[str] = []
    for scan in scan_files(files, scan_table_names, workers):
        names.extend(n for n in scan.literal if n not in names)
        dynamic.extend(scan.dynamic)

    prefixes: list[str] = []
    if dynamic:
        log.debug("dynamic_table_names", subject=subject, names=dynamic[:5])
        prefixes = ask_table_prefixes(memory, session, subject=subject, example=dynamic[0])
        for prefix in prefixes:
            names.extend(n for n in introspector.tables_by_prefix(prefix) if n not in names)

    names = [n for n in names if n not in ignored]
    tables = introspector.tables(names)
    log.info("tables_discovered", subject=subject, found=len(names), described=len(tables))
    return TableDiscovery(tables=tables, prefixes=prefixes, dynamic_names=dynamic)
