"""Tests for policy-type normalization."""

from __future__ import annotations

import pytest

from cert_compliance.core.policy_types import (
    ENGLISH_KEYWORDS,
    HEBREW_ALIASES,
    HEBREW_NAMES,
    fold_geresh,
    heading_table,
    hebrew_name,
    normalize_policy_type,
)
from cert_compliance.schemas.certificate import PolicyType


class TestAliasCompleteness:
    def test_every_canonical_name_round_trips(self) -> None:
        for policy_type, name in HEBREW_NAMES.items():
            assert normalize_policy_type(name) is policy_type, name

    def test_every_alias_round_trips(self) -> None:
        for policy_type, aliases in HEBREW_ALIASES.items():
            for alias in aliases:
                assert normalize_policy_type(alias) is policy_type, alias

    def test_every_english_keyword_round_trips(self) -> None:
        for keyword, policy_type in ENGLISH_KEYWORDS:
            assert normalize_policy_type(keyword) is policy_type, keyword

    def test_enum_identifiers_pass_through(self) -> None:
        for policy_type in PolicyType:
            assert normalize_policy_type(policy_type.value) is policy_type


class TestNormalization:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("  צד שלישי  ", PolicyType.GENERAL_LIABILITY),
            ("צד ג׳", PolicyType.GENERAL_LIABILITY),
            ("ביטוח קבלנים", PolicyType.CONTRACTOR_ALL_RISKS),
            ("פוליסת אחריות מקצועית מס' 7", PolicyType.PROFESSIONAL_INDEMNITY),
            ("General Liability", PolicyType.GENERAL_LIABILITY),
            ("employer-liability", PolicyType.EMPLOYER_LIABILITY),
            ("Motor Third Party", PolicyType.CAR_THIRD_PARTY),
            ("third party liability", PolicyType.GENERAL_LIABILITY),
            ("Cyber insurance", PolicyType.CYBER_LIABILITY),
        ],
    )
    def test_resolves(self, text: str, expected: PolicyType) -> None:
        assert normalize_policy_type(text) is expected

    @pytest.mark.parametrize("text", [None, "", "   ", "אישור קיום ביטוחים", "xyz"])
    def test_unmatched_is_unknown(self, text) -> None:
        assert normalize_policy_type(text) is PolicyType.UNKNOWN

    def test_longest_hebrew_entry_wins(self) -> None:
        # "רכב צד שלישי" contains "צד שלישי" but belongs to motor cover.
        assert normalize_policy_type("ביטוח רכב צד שלישי") is PolicyType.CAR_THIRD_PARTY


class TestHelpers:
    def test_fold_geresh(self) -> None:
        assert fold_geresh("צד ג׳") == "צד ג'"
        assert fold_geresh("צד ג’") == "צד ג'"

    def test_heading_table_sorted_longest_first(self) -> None:
        table = heading_table()
        assert list(table) == sorted(table, key=len, reverse=True)
        assert "צד שלישי" in table
        assert "חבות מעבידים" in table

    def test_hebrew_name(self) -> None:
        assert hebrew_name(PolicyType.EMPLOYER_LIABILITY) == "חבות מעבידים"
        assert hebrew_name(PolicyType.UNKNOWN) is None
