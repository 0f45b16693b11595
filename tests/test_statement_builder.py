import pytest

from gp_ops.python_libs.python.sql_templates import InvalidIdentifierError
from gp_ops.python_libs.python.statement_builder import (
    STEP_ANALYZE,
    STEP_INSERT,
    STEP_TRUNCATE,
    STEP_UPDATE,
    StatementBuilder,
    TableRef,
    build_join_predicate,
    build_set_clause,
    derive_set_columns,
    parse_join_keys,
)

SOURCE = TableRef("stage", "src")
TARGET = TableRef("edw", "tgt")


def test_table_ref_fqn():
    assert TableRef("edw", "orders").fqn == "edw.orders"
    assert str(TableRef("edw", "orders")) == "edw.orders"


def test_table_ref_validation():
    with pytest.raises(InvalidIdentifierError, match="target schema"):
        TableRef("edw-prod", "orders").validated("target")


class TestParseJoinKeys:
    def test_spacing_variants_parse_the_same(self):
        assert parse_join_keys("a, b ,c") == ["a", "b", "c"]
        assert parse_join_keys("a,b,c") == ["a", "b", "c"]
        assert parse_join_keys("a b c") == ["a", "b", "c"]

    def test_single_key(self):
        assert parse_join_keys("id") == ["id"]

    def test_empty_tokens_are_dropped_by_default(self):
        assert parse_join_keys("a,,b") == ["a", "b"]
        assert parse_join_keys(",a,") == ["a"]
        assert parse_join_keys("") == []
        assert parse_join_keys(" , ") == []

    def test_legacy_tokens_keep_inner_and_leading_empties(self):
        assert parse_join_keys("a,,b", keep_empty_tokens=True) == ["a", "", "b"]
        assert parse_join_keys(",a", keep_empty_tokens=True) == ["", "a"]
        assert parse_join_keys("a, b", keep_empty_tokens=True) == ["a", "", "b"]

    def test_legacy_tokens_drop_trailing_empties(self):
        assert parse_join_keys("a,b,,", keep_empty_tokens=True) == ["a", "b"]
        assert parse_join_keys(",,", keep_empty_tokens=True) == []

    def test_legacy_tokens_without_separator(self):
        assert parse_join_keys("", keep_empty_tokens=True) == [""]
        assert parse_join_keys("id", keep_empty_tokens=True) == ["id"]


class TestFragments:
    def test_set_columns_exclude_join_keys_in_source_order(self):
        assert derive_set_columns(["a", "b", "c"], ["a"]) == ["b", "c"]
        assert derive_set_columns(["c", "a", "b"], ["b", "x"]) == ["c", "a"]

    def test_set_columns_empty_when_every_column_is_a_key(self):
        assert derive_set_columns(["a", "b"], ["b", "a"]) == []

    def test_set_clause_separator(self):
        assert build_set_clause(["b", "c"], "src") == "b = src.b , c = src.c"

    def test_set_clause_empty(self):
        assert build_set_clause([], "src") == ""

    def test_join_predicate(self):
        assert build_join_predicate(["a"], "src", "tgt") == "1=1 AND src.a = tgt.a"
        assert build_join_predicate(["a", "b"], "src", "tgt") == "1=1 AND src.a = tgt.a AND src.b = tgt.b"

    def test_join_predicate_without_keys(self):
        assert build_join_predicate([], "src", "tgt") == "1=1"


class TestInsertStatements:
    def setup_method(self):
        self.builder = StatementBuilder()

    def test_insert_only(self):
        statements = self.builder.build_insert_statements(SOURCE, TARGET)
        assert [s.step for s in statements] == [STEP_INSERT]
        assert statements[0].sql == "INSERT INTO edw.tgt SELECT * FROM stage.src"

    def test_truncate_insert_analyze_order(self):
        statements = self.builder.build_insert_statements(SOURCE, TARGET, truncate=True, analyze=True)
        assert [s.step for s in statements] == [STEP_TRUNCATE, STEP_INSERT, STEP_ANALYZE]
        assert [s.sql for s in statements] == [
            "TRUNCATE TABLE edw.tgt",
            "INSERT INTO edw.tgt SELECT * FROM stage.src",
            "ANALYZE edw.tgt",
        ]

    def test_truncate_without_analyze(self):
        statements = self.builder.build_insert_statements(SOURCE, TARGET, truncate=True)
        assert [s.step for s in statements] == [STEP_TRUNCATE, STEP_INSERT]

    def test_invalid_source_is_rejected(self):
        with pytest.raises(InvalidIdentifierError):
            self.builder.build_insert_statements(TableRef("stage", "src x"), TARGET)


class TestUpdateStatements:
    def setup_method(self):
        self.builder = StatementBuilder()

    def test_update_statement(self):
        statements = self.builder.build_update_statements(SOURCE, TARGET, ["a", "b", "c"], ["a"])
        assert len(statements) == 1
        assert statements[0].step == STEP_UPDATE
        assert statements[0].sql == (
            "UPDATE edw.tgt SET b = src.b , c = src.c FROM stage.src WHERE 1=1 AND src.a = tgt.a"
        )

    def test_update_with_analyze(self):
        statements = self.builder.build_update_statements(SOURCE, TARGET, ["a", "b"], ["a"], analyze=True)
        assert [s.step for s in statements] == [STEP_UPDATE, STEP_ANALYZE]
        assert statements[1].sql == "ANALYZE edw.tgt"

    def test_qualified_predicate(self):
        statements = self.builder.build_update_statements(
            SOURCE, TARGET, ["a", "b"], ["a"], qualify_predicate=True
        )
        assert statements[0].sql == (
            "UPDATE edw.tgt SET b = stage.src.b FROM stage.src WHERE 1=1 AND stage.src.a = edw.tgt.a"
        )

    def test_all_columns_in_key_leaves_set_clause_empty(self):
        statements = self.builder.build_update_statements(SOURCE, TARGET, ["a", "b"], ["a", "b"])
        assert statements[0].sql == (
            "UPDATE edw.tgt SET  FROM stage.src WHERE 1=1 AND src.a = tgt.a AND src.b = tgt.b"
        )

    def test_empty_key_token_is_rejected(self):
        with pytest.raises(InvalidIdentifierError, match="join key column"):
            self.builder.build_update_statements(SOURCE, TARGET, ["a", "b"], ["a", "", "b"])

    def test_invalid_source_column_is_rejected(self):
        with pytest.raises(InvalidIdentifierError, match="source column"):
            self.builder.build_update_statements(SOURCE, TARGET, ["a", "b c"], ["a"])
