"""
Unit tests for the operation table and the verbatim-SQL classifier.
"""

import pytest

from nlcrud.services.operations import (
    AGENT_OPERATIONS,
    OPERATIONS,
    ExecutionMode,
    match_raw_sql,
    raw_operation,
)


class TestMatchRawSql:
    @pytest.mark.parametrize(
        "prompt, keyword",
        [
            ('SELECT * FROM "User";', "SELECT"),
            ("  select id from t", "SELECT"),
            ("\n\tInsert into t values (1)", "INSERT"),
            ("update t set a = 1", "UPDATE"),
            ("DELETE FROM t", "DELETE"),
        ],
    )
    def test_recognizes_sql(self, prompt, keyword):
        assert match_raw_sql(prompt) == keyword

    @pytest.mark.parametrize(
        "prompt",
        [
            "show me all restaurants in Chicago",
            "selection of restaurants in Chicago",
            "please SELECT everything",
            "deleted users",
            "",
        ],
    )
    def test_leaves_natural_language_alone(self, prompt):
        assert match_raw_sql(prompt) is None


class TestOperations:
    def test_agent_operations_cover_crud(self):
        assert [op.name for op in AGENT_OPERATIONS] == ["select", "create", "update", "delete"]
        assert set(OPERATIONS) == {"select", "create", "update", "delete"}

    def test_only_select_returns_rows(self):
        assert OPERATIONS["select"].mode is ExecutionMode.ROWS
        for name in ("create", "update", "delete"):
            assert OPERATIONS[name].mode is ExecutionMode.AFFECTED_COUNT

    def test_every_agent_operation_has_a_directive(self):
        assert OPERATIONS["create"].directive == "generate an INSERT."
        assert all(op.directive for op in AGENT_OPERATIONS)

    @pytest.mark.parametrize(
        "keyword, mode",
        [
            ("SELECT", ExecutionMode.ROWS),
            ("select", ExecutionMode.ROWS),
            ("INSERT", ExecutionMode.AFFECTED_COUNT),
            ("UPDATE", ExecutionMode.AFFECTED_COUNT),
            ("DELETE", ExecutionMode.AFFECTED_COUNT),
        ],
    )
    def test_raw_operation_mode_follows_keyword(self, keyword, mode):
        operation = raw_operation(keyword)
        assert operation.name == "raw"
        assert operation.directive is None
        assert operation.mode is mode
