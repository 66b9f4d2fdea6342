"""Tests for the meta relationship miner."""

import pytest

from schemagen.config.constants import PLATFORM_TABLES
from schemagen.corpus.catalog import Catalog
from schemagen.corpus.models import SourceFile
from schemagen.inference.relationships import (
    MetaCandidate,
    MetaCallScanner,
    MetaResolver,
    MetaTable,
    discover_meta_candidates,
    find_meta_tables,
    has_placeholder,
    is_ignored_value,
    meta_writers,
)
from schemagen.memory.store import DecisionMemory
from schemagen.oracle.models import OraclePolicy
from schemagen.oracle.scripted import ScriptedOracle
from schemagen.oracle.session import OracleSession
from schemagen.schema.models import MetaRelationship, Schema, SerializedMapping

WRITES_PHP = """<?php
update_post_meta( $post_id, '_linked_thing', $thing_id );
update_post_meta( $post_id, '_flag', 'yes' );
add_post_meta( $post_id, "_count", 1 );
$obj->update_post_meta( $x, '_method', $y );
update_metadata( 'post', $id, '_generic', $other_id );
update_option( 'shop_page_id', $page_id );
update_user_meta( $user_id, 'favourite_' . $n, $post->ID );
update_thing_meta( $thing_id, '_linked_post', $post_id );
"""

DEFINITIONS_PHP = """<?php
function update_post_meta( $post_id, $meta_key, $meta_value ) {
    return update_metadata( $meta_type, $post_id, $meta_key, $meta_value );
}
"""

POSTMETA = MetaTable("postmeta", "post", "meta_key", "meta_value")


@pytest.fixture
def meta_tables(catalog: Catalog) -> dict[str, MetaTable]:
    tables = catalog.tables([*PLATFORM_TABLES, "things", "thing_meta"])
    return find_meta_tables(tables)


def _candidate(key: str, value: str = "$id", table: str = "postmeta") -> MetaCandidate:
    code = f"update_post_meta( $p, '{key}', {value} )"
    return MetaCandidate(table, key, value, "inc/a.php", 3, code)


def _resolver(
    answers: dict[str, dict[str, object]],
    memory: DecisionMemory,
    prior: Schema | None = None,
    *,
    policy: OraclePolicy | None = None,
    from_scratch: bool = False,
) -> tuple[MetaResolver, ScriptedOracle]:
    oracle = ScriptedOracle(answers)
    resolver = MetaResolver(
        prior or Schema(slug="shop", version="1.0"),
        {"postmeta": POSTMETA},
        memory,
        OracleSession(oracle, policy),
        from_scratch=from_scratch,
    )
    return resolver, oracle


class TestMetaTables:
    """Meta table detection."""

    def test_find_meta_tables(self, meta_tables: dict[str, MetaTable]) -> None:
        """Tables ending in meta plus options, with the first two text columns."""
        assert set(meta_tables) == {"options", "postmeta", "usermeta", "thing_meta"}
        thing_meta = MetaTable("thing_meta", "thing", "meta_key", "meta_value")
        assert meta_tables["thing_meta"] == thing_meta
        assert meta_tables["options"].key_column == "option_name"
        assert meta_tables["options"].value_column == "option_value"

    def test_writers(self) -> None:
        """Entity tables get the entity and generic writers."""
        names = [w.name for w in meta_writers(POSTMETA)]

        assert names == ["add_post_meta", "update_post_meta", "add_metadata", "update_metadata"]

    def test_options_writers(self) -> None:
        """The options table is written by add_option and update_option."""
        options = MetaTable("options", "options", "option_name", "option_value")

        assert [(w.name, w.key_pos) for w in meta_writers(options)] == [
            ("add_option", 0),
            ("update_option", 0),
        ]


class TestFilters:
    """Value and key filters."""

    @pytest.mark.parametrize(
        ("value", "ignored"),
        [
            ("$post_id", False),
            ('"post-$id"', False),
            ("'yes'", True),
            ("12", True),
            ("TRUE", True),
            ("$count", True),
            ("'0'", True),
            ("", True),
        ],
    )
    def test_is_ignored_value(self, value: str, ignored: bool) -> None:
        """Constants never carry identifiers."""
        assert is_ignored_value(value) is ignored

    @pytest.mark.parametrize(
        ("key", "placeholder"),
        [("_price_{$i}", True), ("_price_%", True), ("favourite_ . $n", True), ("_x", False)],
    )
    def test_has_placeholder(self, key: str, placeholder: bool) -> None:
        """Keys built at run time."""
        assert has_placeholder(key) is placeholder


class TestDiscovery:
    """Candidate discovery."""

    def test_scanner_finds_writes(self, meta_tables: dict[str, MetaTable]) -> None:
        """Literal-valued and method calls are skipped; the generic writer is mapped."""
        candidates = discover_meta_candidates(
            [SourceFile.from_text("writes.php", WRITES_PHP)], meta_tables
        )

        assert sorted(candidates) == [
            ("options", "shop_page_id"),
            ("postmeta", "_generic"),
            ("postmeta", "_linked_thing"),
            ("thing_meta", "_linked_post"),
            ("usermeta", "favourite_ . $n"),
        ]
        linked = candidates[("postmeta", "_linked_thing")]
        assert linked.value == "$thing_id"
        assert linked.line == 2
        assert linked.code.startswith("update_post_meta(")

    def test_definitions_skipped(self, meta_tables: dict[str, MetaTable]) -> None:
        """Function declarations and variable keys are not writes."""
        candidates = discover_meta_candidates(
            [SourceFile.from_text("meta.php", DEFINITIONS_PHP)], meta_tables
        )

        assert candidates == {}

    def test_first_file_wins(self, meta_tables: dict[str, MetaTable]) -> None:
        """The earliest call site in file order is kept."""
        files = [
            SourceFile.from_text("a.php", "<?php update_option( 'k', $first );"),
            SourceFile.from_text("b.php", "<?php update_option( 'k', $second );"),
        ]

        sequential = discover_meta_candidates(files, meta_tables, workers=1)
        parallel = discover_meta_candidates(files, meta_tables, workers=2)

        assert sequential[("options", "k")].file == "a.php"
        assert parallel[("options", "k")].value == "$first"

    def test_no_writers(self) -> None:
        """No meta tables, nothing to find."""
        scanner = MetaCallScanner([])
        assert scanner(SourceFile.from_text("a.php", WRITES_PHP)) == []


class TestMetaResolver:
    """Oracle-driven classification."""

    def test_simple_yes(self, memory: DecisionMemory) -> None:
        """yes / simple / table records a simple relationship."""
        resolver, _ = _resolver(
            {
                "meta_has_ids": {"postmeta:_thumb": "yes"},
                "meta_value_kind": {"*": "simple"},
                "meta_target_table": {"*": "posts"},
            },
            memory,
        )

        result = resolver.resolve({("postmeta", "_thumb"): _candidate("_thumb")})

        assert result.relationships == {
            "postmeta": {"_thumb": MetaRelationship("meta_key", "meta_value", "_thumb", "posts")}
        }
        assert result.discovered == {"postmeta:_thumb"}

    def test_serialized(self, memory: DecisionMemory) -> None:
        """Serialized answers record the inner key and value mapping."""
        resolver, _ = _resolver(
            {
                "meta_has_ids": {"*": "yes"},
                "meta_value_kind": {"*": "serialized"},
                "serialized_key": {"*": "ids"},
                "serialized_value": {"*": "posts"},
            },
            memory,
        )

        result = resolver.resolve({("postmeta", "_gallery"): _candidate("_gallery")})

        rel = result.relationships["postmeta"]["_gallery"]
        assert rel.serialized == SerializedMapping("ids", "posts")
        assert rel.target == "posts"

    def test_serialized_key_value_pair(self, memory: DecisionMemory) -> None:
        """A keyTable|valueTable answer targets the value table only."""
        resolver, _ = _resolver(
            {
                "meta_has_ids": {"*": "yes"},
                "meta_value_kind": {"*": "serialized"},
                "serialized_key": {"*": "ignore"},
                "serialized_value": {"*": "terms|posts"},
            },
            memory,
        )

        result = resolver.resolve({("postmeta", "_related"): _candidate("_related")})

        rel = result.relationships["postmeta"]["_related"]
        assert rel.target == "posts"
        assert rel.serialized == SerializedMapping("ignore", "terms|posts")

    def test_no_is_remembered(self, memory: DecisionMemory) -> None:
        """A no answer ignores the key for good."""
        candidates = {("postmeta", "_x"): _candidate("_x")}
        first, _ = _resolver({"meta_has_ids": {"*": "no"}}, memory)
        first.resolve(candidates)

        second, oracle = _resolver({}, memory)
        result = second.resolve(candidates)

        assert memory.is_meta_ignored("postmeta", "_x")
        assert oracle.asked == []
        assert result.relationships == {}
        assert result.discovered == {"postmeta:_x"}

    def test_defer_records_nothing(self, memory: DecisionMemory) -> None:
        """Deferred keys are neither recorded nor ignored."""
        resolver, _ = _resolver({"meta_has_ids": {"*": "defer"}}, memory)

        result = resolver.resolve({("postmeta", "_x"): _candidate("_x")})

        assert result.relationships == {}
        assert not memory.is_meta_ignored("postmeta", "_x")

    def test_stop_ignores_remaining_new(self, memory: DecisionMemory) -> None:
        """After stop, every remaining new key is ignored without asking."""
        resolver, oracle = _resolver({"meta_has_ids": {"*": "stop"}}, memory)
        candidates = {(c.table, c.key): c for c in (_candidate("_a"), _candidate("_b"))}

        resolver.resolve(candidates)

        assert oracle.refs() == ["postmeta:_a"]
        assert memory.is_meta_ignored("postmeta", "_a")
        assert memory.is_meta_ignored("postmeta", "_b")

    def test_placeholder_key_translated(self, memory: DecisionMemory) -> None:
        """Run-time keys ask for a literal form, which is persisted at once."""
        resolver, _ = _resolver(
            {
                "meta_has_ids": {"*": "yes"},
                "meta_key_translation": {"*": "_price_%"},
                "meta_value_kind": {"*": "simple"},
                "meta_target_table": {"*": "posts"},
            },
            memory,
        )

        result = resolver.resolve({("postmeta", "_price_{$i}"): _candidate("_price_{$i}")})

        assert list(result.relationships["postmeta"]) == ["_price_%"]
        assert memory.translate_meta_key("postmeta", "meta_key", "_price_{$i}") == "_price_%"
        assert result.discovered == {"postmeta:_price_%"}

    def test_existing_kept(self, memory: DecisionMemory) -> None:
        """A recorded key is only asked keep/edit."""
        prior = Schema(slug="shop", version="1.0")
        prior.relationships = {
            "postmeta": {"_x": MetaRelationship("meta_key", "meta_value", "_x", "posts")}
        }
        resolver, oracle = _resolver({"keep_existing": {"*": "keep"}}, memory, prior)

        result = resolver.resolve({("postmeta", "_x"): _candidate("_x")})

        assert [q.kind.value for q in oracle.asked] == ["keep_existing"]
        assert result.relationships == {}
        assert result.edited == {}

    def test_existing_edited(self, memory: DecisionMemory) -> None:
        """Editing re-classifies the key and replaces the record."""
        prior = Schema(slug="shop", version="1.0")
        prior.relationships = {
            "postmeta": {"_x": MetaRelationship("meta_key", "meta_value", "_x", "posts")}
        }
        resolver, _ = _resolver(
            {
                "keep_existing": {"*": "edit"},
                "meta_value_kind": {"*": "simple"},
                "meta_target_table": {"*": "users"},
            },
            memory,
            prior,
        )

        result = resolver.resolve({("postmeta", "_x"): _candidate("_x")})

        assert result.edited["postmeta"]["_x"].target == "users"

    def test_from_scratch_ignores_prior(self, memory: DecisionMemory) -> None:
        """From scratch, recorded keys are asked about as new."""
        prior = Schema(slug="shop", version="1.0")
        prior.relationships = {
            "postmeta": {"_x": MetaRelationship("meta_key", "meta_value", "_x", "posts")}
        }
        resolver, oracle = _resolver(
            {"meta_has_ids": {"*": "defer"}}, memory, prior, from_scratch=True
        )

        resolver.resolve({("postmeta", "_x"): _candidate("_x")})

        assert oracle.refs("meta_has_ids") == ["postmeta:_x"]

    def test_skip_all_defers_new_and_keeps_existing(self, memory: DecisionMemory) -> None:
        """Skip-all leaves everything as it was."""
        prior = Schema(slug="shop", version="1.0")
        prior.relationships = {
            "postmeta": {"_x": MetaRelationship("meta_key", "meta_value", "_x", "posts")}
        }
        resolver, oracle = _resolver({}, memory, prior, policy=OraclePolicy(skip_all=True))
        candidates = {(c.table, c.key): c for c in (_candidate("_x"), _candidate("_y"))}

        result = resolver.resolve(candidates)

        assert result.relationships == {} and result.edited == {}
        assert oracle.asked == []
        assert not memory.is_meta_ignored("postmeta", "_y")

    def test_headless_keeps_existing_without_asking(self, memory: DecisionMemory) -> None:
        """Recorded keys are not undecided, so a headless run leaves them be."""
        prior = Schema(slug="shop", version="1.0")
        prior.relationships = {
            "postmeta": {"_x": MetaRelationship("meta_key", "meta_value", "_x", "posts")}
        }
        resolver, oracle = _resolver({}, memory, prior, policy=OraclePolicy(headless=True))

        result = resolver.resolve({("postmeta", "_x"): _candidate("_x")})

        assert oracle.asked == []
        assert result.relationships == {} and result.edited == {}
        assert result.discovered == {"postmeta:_x"}
