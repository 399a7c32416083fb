"""Shared fixtures for the certificate compliance test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from omegaconf import OmegaConf

from cert_compliance.schemas.certificate import (
    AdditionalInsured,
    ExtractedCertificateData,
    ExtractedPolicy,
    PolicyType,
)
from cert_compliance.schemas.requirement import PolicyRequirement, RequirementTemplate

# ---------------------------------------------------------------------------
# Certificate texts
# ---------------------------------------------------------------------------

FULL_CERTIFICATE = """\
אישור קיום ביטוחים
תאריך הנפקת האישור: 15/01/2026
אסמכתא: 000050229
מבקש האישור: עיריית תל אביב ח.פ. 500250006
המבוטח: בונים בע"מ ח.פ. 513456789
קוד השירות: 40
הפניקס חברה לביטוח בע"מ

צד שלישי
מספר פוליסה: 25-081-630-1055058
תקופת הביטוח: 01/01/2026 - 31/12/2026
גבול אחריות לתקופה: 5,000,000 ₪
גבול אחריות למקרה: 2,000,000 ₪
השתתפות עצמית: 20,000 ₪
נוסח הפוליסה: ביט 2019
הרחבות: 302, 309, 318, 321
חבות מעבידים
מספר פוליסה: 25-081-630-1055059
תאריך תחילה: 01/01/2026
תאריך סיום: 31/12/2026
גבול אחריות למקרה: 6,000,000 ₪
גבול אחריות לתקופה: 20,000,000 ₪
הרחבות: 319, 350
"""


@pytest.fixture()
def full_certificate_text() -> str:
    """A two-policy certificate with header metadata."""
    return FULL_CERTIFICATE


@pytest.fixture()
def general_liability_text() -> str:
    """Per-period and per-occurrence limits under a third-party heading."""
    return "צד שלישי\nגבול אחריות לתקופה: 5,000,000 ₪\nגבול אחריות למקרה: 2,000,000 ₪\n"


@pytest.fixture()
def adjacent_sections_text() -> str:
    """Two sections sharing the same field labels."""
    return (
        "צד שלישי\n"
        "גבול אחריות לתקופה: 5,000,000 ₪\n"
        "הרחבות: 302, 309\n"
        "חבות מעבידים\n"
        "גבול אחריות לתקופה: 20,000,000 ₪\n"
        "הרחבות: 319, 350\n"
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@pytest.fixture()
def now() -> datetime:
    """Fixed analysis time."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def gl_policy() -> ExtractedPolicy:
    return ExtractedPolicy(
        policy_type=PolicyType.GENERAL_LIABILITY,
        policy_type_he="צד שלישי",
        policy_number="25-081-630-1055058",
        coverage_limit_per_period=5_000_000,
        coverage_limit_per_occurrence=2_000_000,
        deductible=20_000,
        effective_date=date(2026, 1, 1),
        expiration_date=date(2026, 12, 31),
        policy_wording="ביט 2019",
        endorsement_codes=frozenset({"302", "309", "318"}),
        confidence=1.0,
    )


@pytest.fixture()
def certificate(gl_policy: ExtractedPolicy) -> ExtractedCertificateData:
    return ExtractedCertificateData(
        certificate_number="000050229",
        insurer_name="הפניקס",
        policies=[gl_policy],
        additional_insured=AdditionalInsured(is_named_as_additional=True, waiver_of_subrogation=True),
        confidence=0.9,
    )


@pytest.fixture()
def gl_requirement() -> PolicyRequirement:
    return PolicyRequirement(
        policy_type=PolicyType.GENERAL_LIABILITY,
        minimum_limit_per_period=3_000_000,
        is_mandatory=True,
    )


@pytest.fixture()
def sample_template(gl_requirement: PolicyRequirement) -> RequirementTemplate:
    return RequirementTemplate(
        name="contractor",
        name_he="קבלן",
        requirements=(
            gl_requirement,
            PolicyRequirement(
                policy_type=PolicyType.EMPLOYER_LIABILITY,
                minimum_limit_per_period=20_000_000,
                is_mandatory=False,
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Template files
# ---------------------------------------------------------------------------

@pytest.fixture()
def templates_dir(tmp_path: Path) -> Path:
    """A directory holding one YAML and one CSV template."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "contractor.yaml").write_text(
        "name: contractor\n"
        "name_he: קבלן\n"
        "requirements:\n"
        "  - policy_type: צד ג'\n"
        "    minimum_limit_per_period: 3000000\n"
        "    required_endorsements: ['302']\n"
        "  - policy_type: EMPLOYER_LIABILITY\n"
        "    minimum_limit_per_period: 20000000\n"
        "    is_mandatory: false\n",
        encoding="utf-8",
    )
    (directory / "consultant.csv").write_text(
        "policy_type,minimum_limit_per_period,minimum_limit_per_occurrence,"
        "maximum_deductible,required_endorsements,require_additional_insured,is_mandatory\n"
        'PROFESSIONAL_INDEMNITY,"1,000,000",500000,,301;332,,true\n'
        "General Liability,2000000,,25000,302;318,true,false\n",
        encoding="utf-8",
    )
    return directory


# ---------------------------------------------------------------------------
# Hydra config fixture (test overrides)
# ---------------------------------------------------------------------------

@pytest.fixture()
def test_cfg(templates_dir: Path) -> Any:
    """Return a minimal OmegaConf DictConfig with test overrides."""
    cfg_dict = {
        "parser": {"amount_window": 120},
        "data": {"templates_dir": str(templates_dir)},
        "logging": {
            "level": "WARNING",
            "colored": False,
            "format": "pretty",
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8000,
            "debug": False,
            "cors_origins": ["http://localhost:3000"],
        },
    }
    return OmegaConf.create(cfg_dict)
