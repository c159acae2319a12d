"""
Unit Tests for Verifiers
========================

Tests for the statement guard, the intent checker and the verification chain.
"""

import pytest

from conftest import HEALTHCARE_MONGO, HEALTHCARE_MYSQL

from text2sql_engine.errors import (
    EmptyStatementError,
    MultiStatementError,
    UnsafeStatementError,
)
from text2sql_engine.models import Dialect, VerificationResult, VerificationStatus
from text2sql_engine.verifiers.base import VerificationChain, Verifier
from text2sql_engine.verifiers.guard import StatementGuard, strip_terminator
from text2sql_engine.verifiers.intent import IntentChecker, IntentPolicy


class TestStatementGuard:
    """Tests for the StatementGuard."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM clients",
            "select client_id from clients;",
            "WITH t AS (SELECT 1 AS x) SELECT x FROM t",
            "EXPLAIN SELECT * FROM clients",
            "SELECT create_time, updated_at FROM clients",
        ],
    )
    def test_read_only_passes(self, guard: StatementGuard, sql: str) -> None:
        """Test that single read-only statements validate."""
        guard.validate(sql)

    @pytest.mark.parametrize("sql", ["", "   ", None])
    def test_empty_rejected(self, guard: StatementGuard, sql) -> None:
        """Test that blank input is rejected."""
        with pytest.raises(EmptyStatementError):
            guard.validate(sql)

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT 1; SELECT 2",
            "SELECT 1; DROP TABLE clients;",
            "SELECT 1;;",
        ],
    )
    def test_stacked_statements_rejected(self, guard: StatementGuard, sql: str) -> None:
        """Test that stacked statements are rejected."""
        with pytest.raises(MultiStatementError):
            guard.validate(sql)

    @pytest.mark.parametrize(
        "sql",
        [
            "DELETE FROM clients",
            "UPDATE clients SET risk_level = '高'",
            "INSERT INTO clients VALUES (1)",
            "SHOW TABLES",
            "SELECT * FROM clients -- drop table clients",
        ],
    )
    def test_modifying_statements_rejected(self, guard: StatementGuard, sql: str) -> None:
        """Test that anything non read-only is rejected."""
        with pytest.raises(UnsafeStatementError):
            guard.validate(sql)

    def test_forbidden_keyword_named(self, guard: StatementGuard) -> None:
        """Test that the error names the offending keyword."""
        with pytest.raises(UnsafeStatementError, match="TRUNCATE"):
            guard.validate("SELECT 1 FROM dual WHERE 1 = 1 truncate")

    def test_verify_reports_failure(self, guard: StatementGuard) -> None:
        """Test that verify turns a rejection into a FAILED result."""
        result = guard.verify("DROP TABLE clients", {})
        assert result.status == VerificationStatus.FAILED
        assert result.verifier_name == "StatementGuard"
        assert result.details["error_type"] == "UnsafeStatementError"

    def test_verify_passes(self, guard: StatementGuard) -> None:
        result = guard.verify("SELECT 1", {})
        assert result.status == VerificationStatus.PASSED

    def test_strip_terminator(self) -> None:
        assert strip_terminator("  SELECT 1 ;  ") == "SELECT 1"
        assert strip_terminator("SELECT 1") == "SELECT 1"


class TestRowCap:
    """Tests for StatementGuard.cap_rows."""

    def test_limit_added(self, guard: StatementGuard) -> None:
        """Test that a statement without LIMIT gets one."""
        assert guard.cap_rows("SELECT * FROM clients", 50) == "SELECT * FROM clients LIMIT 50"

    def test_smaller_limit_kept(self, guard: StatementGuard) -> None:
        """Test that an existing smaller LIMIT is left alone."""
        assert guard.cap_rows("SELECT * FROM clients LIMIT 10;", 50) == "SELECT * FROM clients LIMIT 10"

    def test_larger_limit_lowered(self, guard: StatementGuard) -> None:
        """Test that an existing larger LIMIT is lowered to the cap."""
        capped = guard.cap_rows("SELECT * FROM clients LIMIT 5000", 50)
        assert capped == "SELECT * FROM clients LIMIT 50"

    def test_set_operation_gets_textual_limit(self, guard: StatementGuard) -> None:
        """Test that a UNION falls back to appending LIMIT."""
        sql = "SELECT client_id FROM clients UNION SELECT client_id FROM portfolios"
        assert guard.cap_rows(sql, 20) == f"{sql} LIMIT 20"

    def test_non_positive_cap_disables(self, guard: StatementGuard) -> None:
        assert guard.cap_rows("SELECT * FROM clients", 0) == "SELECT * FROM clients"

    def test_postgres_dialect(self, guard: StatementGuard) -> None:
        capped = guard.cap_rows("SELECT client_id FROM clients", 10, "postgres")
        assert capped.endswith("LIMIT 10")

    def test_star_select_capped_at_five(self, guard: StatementGuard) -> None:
        assert guard.cap_rows("SELECT * FROM clients", 5) == "SELECT * FROM clients LIMIT 5"

    @pytest.mark.parametrize(
        "sql, dialect",
        [
            ("SELECT * FROM clients", None),
            ("SELECT * FROM clients LIMIT 5000", None),
            ("SELECT * FROM clients LIMIT 2", None),
            ("SELECT * FROM clients LIMIT 10, 20", "mysql"),
            ("SELECT client_id FROM clients UNION SELECT client_id FROM portfolios", None),
            ("SELECT 'unterminated", None),
            ("SELECT client_id FROM clients", "postgres"),
        ],
    )
    def test_idempotent(self, guard: StatementGuard, sql: str, dialect: str | None) -> None:
        """Test that capping an already capped statement changes nothing."""
        once = guard.cap_rows(sql, 5, dialect)
        assert guard.cap_rows(once, 5, dialect) == once
        assert "LIMIT" in once.upper()


class TestIntentChecker:
    """Tests for the IntentChecker."""

    def test_count_question_needs_aggregate(self, intent_checker: IntentChecker) -> None:
        """Test that a statistic question without an aggregate fails."""
        outcome = intent_checker.check("客户数量是多少", "SELECT client_id FROM clients")
        assert not outcome.ok
        assert "aggregate" in outcome.hint

    def test_count_question_with_aggregate(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check("How many clients are there?", "SELECT COUNT(*) FROM clients")
        assert outcome.ok
        assert outcome.hint == ""

    def test_group_question_needs_group_by(self, intent_checker: IntentChecker) -> None:
        """Test that a per-group question without GROUP BY fails."""
        outcome = intent_checker.check(
            "每个风险等级的客户数量",
            "SELECT COUNT(*) FROM clients",
        )
        assert not outcome.ok
        assert "GROUP BY" in outcome.hint

    def test_per_department_count_needs_group_by(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check(
            "每个部门的员工数量",
            "SELECT COUNT(*) AS cnt FROM medical_staff",
        )
        assert not outcome.ok
        assert "GROUP BY" in outcome.hint

    def test_ranking_question_needs_order_by(self, intent_checker: IntentChecker) -> None:
        """Test that a top-N question without ORDER BY fails."""
        outcome = intent_checker.check("资产前10的客户", "SELECT * FROM clients LIMIT 10")
        assert not outcome.ok
        assert "ORDER BY" in outcome.hint

    def test_ranking_question_with_order_by(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check(
            "Show the top 5 clients by assets",
            "SELECT client_id, client_name, risk_level FROM clients "
            "ORDER BY total_assets DESC LIMIT 5",
        )
        assert outcome.ok

    def test_listing_needs_key_columns(self, intent_checker: IntentChecker) -> None:
        """Test that listing clients with a single column fails."""
        outcome = intent_checker.check("列出所有客户", "SELECT client_name FROM clients")
        assert not outcome.ok
        assert "client_id" in outcome.hint

    def test_listing_with_key_columns(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check(
            "列出所有客户",
            "SELECT client_id, client_name, risk_level, total_assets FROM clients",
        )
        assert outcome.ok

    def test_listing_patients(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check("list all patients", "SELECT * FROM patients")
        assert not outcome.ok
        assert "patients" in outcome.hint

    def test_word_inside_identifier_is_not_intent(self, intent_checker: IntentChecker) -> None:
        """Test that 'account' or 'at least' do not trigger the statistic rules."""
        outcome = intent_checker.check(
            "Which account holds at least one fund?",
            "SELECT client_id FROM clients WHERE total_assets > 0",
        )
        assert outcome.ok

    @pytest.mark.parametrize(
        "question",
        [
            "Which desktop clients stopped trading?",
            "stop orders placed this week",
            "Which topics do clients ask about?",
        ],
    )
    def test_ranking_word_inside_other_word(self, intent_checker: IntentChecker, question: str) -> None:
        """Test that 'top' inside 'stop' or 'desktop' is not a ranking request."""
        outcome = intent_checker.check(question, "SELECT client_id FROM clients WHERE is_active = FALSE")
        assert outcome.ok, outcome.hint

    def test_top_still_ranks(self, intent_checker: IntentChecker) -> None:
        outcome = intent_checker.check("top 5 portfolios", "SELECT * FROM portfolios LIMIT 5")
        assert not outcome.ok
        assert "ORDER BY" in outcome.hint

    def test_empty_inputs_pass(self, intent_checker: IntentChecker) -> None:
        assert intent_checker.check("", "SELECT 1").ok
        assert intent_checker.check("多少", "").ok

    def test_custom_policy(self) -> None:
        """Test that keyword sets come from the policy."""
        policy = IntentPolicy(
            aggregate_words=("wie viele",),
            group_words=(),
            ranking_words=(),
            ranking_patterns=(),
            listing_verbs=(),
        )
        checker = IntentChecker(policy)
        assert not checker.check("Wie viele Kunden?", "SELECT * FROM clients").ok
        assert checker.check("客户数量是多少", "SELECT * FROM clients").ok

    def test_verify_uses_original_query(self, intent_checker: IntentChecker) -> None:
        result = intent_checker.verify(
            "SELECT client_id FROM clients",
            {"original_query": "how many clients"},
        )
        assert result.status == VerificationStatus.FAILED
        assert result.message.startswith("Intent mismatch")


class TestVerificationChain:
    """Tests for the VerificationChain."""

    def test_default_chain_is_guard(self) -> None:
        chain = VerificationChain()
        assert [v.name for v in chain.verifiers] == ["StatementGuard"]

    def test_stops_at_first_failure(self, intent_checker: IntentChecker) -> None:
        """Test that later verifiers do not run after a failure."""
        chain = VerificationChain([StatementGuard(), intent_checker])
        passed, results = chain.run("DELETE FROM clients", {"original_query": "how many"})
        assert passed is False
        assert len(results) == 1

    def test_all_pass(self, intent_checker: IntentChecker) -> None:
        chain = VerificationChain([StatementGuard(), intent_checker])
        passed, results = chain.run(
            "SELECT COUNT(*) FROM clients",
            {"original_query": "how many clients"},
        )
        assert passed is True
        assert [r.status for r in results] == [VerificationStatus.PASSED] * 2

    def test_skips_other_dialects(self) -> None:
        """Test that a relational-only verifier is skipped for the document store."""
        chain = VerificationChain([StatementGuard(), RelationalOnly()])
        passed, results = chain.run("SELECT name FROM patients", {"target": HEALTHCARE_MONGO})
        assert passed is True
        assert results[1].status == VerificationStatus.SKIPPED

        passed, results = chain.run("SELECT name FROM patients", {"target": HEALTHCARE_MYSQL})
        assert passed is False
        assert VerificationChain.failures(results) == ["relational_only"]


class RelationalOnly(Verifier):
    """Always fails; only applies to SQL dialects."""

    dialects = frozenset({Dialect.MYSQL, Dialect.PGSQL})

    @property
    def name(self) -> str:
        return "relational_only"

    def verify(self, sql: str, context: dict) -> VerificationResult:
        return VerificationResult(self.name, VerificationStatus.FAILED, "rejected")
