"""
Unit Tests for SQL Generation
=============================

Tests for the rule templates, the LLM generator and the LLM adapters.
"""

import threading

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from conftest import FailingLLM

from text2sql_engine.config import Settings
from text2sql_engine.errors import GenerationUnavailableError
from text2sql_engine.generation import build_generator
from text2sql_engine.generation.llm import LLMSqlGenerator, clean_sql_text
from text2sql_engine.generation.rules import RuleBasedSqlGenerator, build_rule_sql
from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.llm.langchain_llm import LangChainLLM
from text2sql_engine.llm.mock import MockLLM
from text2sql_engine.models import Dialect, Domain, LLMResponse


class SlowLLM(LLMInterface):
    """LLM that blocks until released."""

    def __init__(self) -> None:
        self.release = threading.Event()

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        self.release.wait(5)
        return LLMResponse(content="SELECT 1", model="slow")


class TestRuleTemplates:
    """Tests for the rule-based generator."""

    @pytest.mark.parametrize(
        "question, expected",
        [
            (
                "列出姓王的客户",
                "SELECT client_id, client_name, risk_level, total_assets FROM clients "
                "WHERE client_name LIKE '王%'",
            ),
            (
                "风险等级为稳健的客户有哪些",
                "SELECT client_id, client_name, risk_level, total_assets FROM clients "
                "WHERE risk_level = '稳健'",
            ),
            ("客户数量是多少", "SELECT COUNT(*) AS cnt FROM clients"),
            ("How many clients do we have?", "SELECT COUNT(*) AS cnt FROM clients"),
            (
                "资产前5的客户",
                "SELECT client_id, client_name, risk_level, total_assets FROM clients "
                "ORDER BY total_assets DESC LIMIT 5",
            ),
            (
                "列出所有客户",
                "SELECT client_id, client_name, risk_level, total_assets FROM clients",
            ),
        ],
    )
    def test_finance(self, question: str, expected: str) -> None:
        assert build_rule_sql(Domain.FINANCE, question) == expected

    def test_top_n_out_of_range(self) -> None:
        assert build_rule_sql(Domain.FINANCE, "top 0 clients").endswith("LIMIT 10")
        assert build_rule_sql(Domain.FINANCE, "top 5000 clients").endswith("LIMIT 10")

    def test_healthcare(self) -> None:
        assert build_rule_sql(Domain.HEALTHCARE, "患者有多少") == "SELECT COUNT(*) AS cnt FROM patients"
        assert build_rule_sql(Domain.HEALTHCARE, "show all patients") == (
            "SELECT patient_id, name, gender, age FROM patients"
        )

    def test_no_match_is_blank(self) -> None:
        assert build_rule_sql(Domain.FINANCE, "今天天气怎么样") == ""
        assert build_rule_sql(Domain.HEALTHCARE, "") == ""

    def test_generator(self) -> None:
        generator = RuleBasedSqlGenerator()
        candidate = generator.generate(Domain.FINANCE, "客户数量")
        assert candidate.source == "rules"
        assert candidate.domain is Domain.FINANCE
        assert generator.regenerate_with_hint(
            Domain.FINANCE, "客户数量", candidate.sql, "hint"
        ) == candidate


class TestCleanSqlText:
    """Tests for clean_sql_text."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("```sql\nSELECT 1\n```", "SELECT 1"),
            ("Here you go:\n```SQL\nSELECT a FROM t\n```\nDone.", "SELECT a FROM t"),
            ('"SELECT 1"', "SELECT 1"),
            ("SELECT a\\nFROM t", "SELECT a\nFROM t"),
            ("  SELECT 1  ", "SELECT 1"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_clean(self, text, expected: str) -> None:
        assert clean_sql_text(text) == expected


class TestLLMSqlGenerator:
    """Tests for the LLM-backed generator."""

    def test_generate(self, mock_llm_simple: MockLLM) -> None:
        generator = LLMSqlGenerator(mock_llm_simple, backoff_seconds=0)
        candidate = generator.generate(Domain.FINANCE, "Show high risk clients")
        assert candidate.sql == "SELECT client_id, client_name FROM clients WHERE risk_level = 'high'"
        assert candidate.source == "llm"

    def test_prompt_contains_schema_and_codes(self, mock_llm_simple: MockLLM) -> None:
        generator = LLMSqlGenerator(mock_llm_simple, backoff_seconds=0)
        generator.generate(Domain.HEALTHCARE, "list female patients")
        prompt = mock_llm_simple.prompts[-1]
        assert "patients(patient_id" in prompt
        assert "patients.gender only accepts the codes: M, F" in prompt
        assert "Question: list female patients" in prompt

    def test_correction_prompt(self, mock_llm_with_correction: MockLLM) -> None:
        generator = LLMSqlGenerator(mock_llm_with_correction, backoff_seconds=0)
        first = generator.generate(Domain.FINANCE, "How many clients?")
        second = generator.regenerate_with_hint(
            Domain.FINANCE, "How many clients?", first.sql, "needs COUNT"
        )
        assert second.sql == "SELECT COUNT(*) AS cnt FROM clients"
        prompt = mock_llm_with_correction.prompts[-1]
        assert "Previous SQL: SELECT client_id FROM clients" in prompt
        assert "Problem: needs COUNT" in prompt

    def test_retries_then_unavailable(self) -> None:
        llm = FailingLLM()
        generator = LLMSqlGenerator(llm, max_retries=3, backoff_seconds=0)
        with pytest.raises(GenerationUnavailableError, match="unreachable"):
            generator.generate(Domain.FINANCE, "客户数量")
        assert llm.calls == 3

    def test_timeout(self) -> None:
        llm = SlowLLM()
        generator = LLMSqlGenerator(llm, timeout_seconds=0.05, max_retries=1, backoff_seconds=0)
        try:
            with pytest.raises(GenerationUnavailableError, match="timed out"):
                generator.generate(Domain.FINANCE, "客户数量")
        finally:
            llm.release.set()

    def test_blank_reply(self) -> None:
        generator = LLMSqlGenerator(MockLLM(default="   "), backoff_seconds=0)
        assert generator.generate(Domain.FINANCE, "anything").is_blank


class TestBuildGenerator:
    """Tests for the configuration-driven generator factory."""

    def test_rules_mode(self) -> None:
        generator = build_generator(Settings(generator_mode="rules"), MockLLM())
        assert isinstance(generator, RuleBasedSqlGenerator)

    def test_llm_mode_without_client(self) -> None:
        assert isinstance(build_generator(Settings(generator_mode="llm")), RuleBasedSqlGenerator)

    def test_llm_mode(self) -> None:
        generator = build_generator(
            Settings(generator_mode="LLM", default_dialect="postgres", generation_max_retries=5),
            MockLLM(),
        )
        assert isinstance(generator, LLMSqlGenerator)
        assert generator.dialect is Dialect.PGSQL
        assert generator.max_retries == 5

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            build_generator(Settings(generator_mode="oracle"))


class TestLLMAdapters:
    """Tests for LLM interface implementations."""

    def test_mock_sequences_replies(self, mock_llm_with_correction: MockLLM) -> None:
        first = mock_llm_with_correction.generate("how many clients")
        second = mock_llm_with_correction.generate("How Many Clients again")
        third = mock_llm_with_correction.generate("how many clients, third time")
        assert first.content == "SELECT client_id FROM clients"
        assert second.content == "SELECT COUNT(*) AS cnt FROM clients"
        assert third.content == second.content

        mock_llm_with_correction.reset()
        assert mock_llm_with_correction.generate("how many clients").content == first.content

    def test_mock_default(self) -> None:
        assert MockLLM(default="SELECT 1").generate("unknown").content == "SELECT 1"
        assert MockLLM().generate("unknown").model == "mock-llm-v1"
        assert FailingLLM().model_name == "FailingLLM"

    def test_langchain_adapter(self) -> None:
        llm = LangChainLLM(FakeListChatModel(responses=["```sql\nSELECT 1\n```"]))
        response = llm.generate("question", system_prompt="system")
        assert response.content == "```sql\nSELECT 1\n```"
        assert response.model

    def test_langchain_through_generator(self) -> None:
        llm = LangChainLLM(FakeListChatModel(responses=["SELECT COUNT(*) FROM patients"]))
        generator = LLMSqlGenerator(llm, backoff_seconds=0)
        assert generator.generate(Domain.HEALTHCARE, "患者数量").sql == "SELECT COUNT(*) FROM patients"
