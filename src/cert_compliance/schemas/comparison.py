"""Pydantic models for compliance comparison results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from cert_compliance.schemas.certificate import SCHEMA_CONFIG, ExtractedPolicy, PolicyType


class ComplianceStatus(str, Enum):
    """Outcome of one requirement, or of the certificate as a whole."""

    COMPLIANT = "compliant"
    PARTIAL = "partial"
    NON_COMPLIANT = "non_compliant"
    MISSING = "missing"
    EXPIRED = "expired"


class Severity(str, Enum):
    """How serious a compliance gap is."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class GapType(str, Enum):
    """Kind of shortfall a gap describes."""

    MISSING_POLICY = "missing_policy"
    INSUFFICIENT_LIMIT = "insufficient_limit"
    INSUFFICIENT_LIMIT_PER_PERIOD = "insufficient_limit_per_period"
    INSUFFICIENT_LIMIT_PER_OCCURRENCE = "insufficient_limit_per_occurrence"
    EXCESSIVE_DEDUCTIBLE = "excessive_deductible"
    MISSING_ENDORSEMENT = "missing_endorsement"
    MISSING_ADDITIONAL_INSURED = "missing_additional_insured"
    MISSING_WAIVER_OF_SUBROGATION = "missing_waiver_of_subrogation"
    WRONG_POLICY_WORDING = "wrong_policy_wording"
    WRONG_CURRENCY = "wrong_currency"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    INVALID_DATES = "invalid_dates"


class ComplianceGap(BaseModel):
    """A single shortfall between a certificate and a requirement."""

    model_config = SCHEMA_CONFIG

    type: GapType
    severity: Severity
    description: str
    description_he: str
    recommendation: Optional[str] = None
    recommendation_he: Optional[str] = None
    required: Optional[Union[int, str]] = None
    found: Optional[Union[int, str]] = None


class PolicyComparisonResult(BaseModel):
    """Outcome of checking one requirement against the certificate."""

    model_config = SCHEMA_CONFIG

    policy_type: PolicyType
    is_mandatory: bool
    status: ComplianceStatus
    policy_index: Optional[int] = Field(
        default=None, description="Index of the matched policy in the certificate's policy list"
    )
    found_policy: Optional[ExtractedPolicy] = None
    gaps: list[ComplianceGap] = Field(default_factory=list)

    # Per-dimension flags; None when the dimension was not evaluated.
    limit_compliant: Optional[bool] = None
    deductible_compliant: Optional[bool] = None
    endorsements_compliant: Optional[bool] = None
    validity_compliant: Optional[bool] = None
    additional_insured_compliant: Optional[bool] = None
    currency_compliant: Optional[bool] = None
    wording_compliant: Optional[bool] = None


class ComparisonResult(BaseModel):
    """Aggregate compliance report for one certificate against one template."""

    model_config = SCHEMA_CONFIG

    overall_status: ComplianceStatus
    compliance_score: int = Field(..., ge=0, le=100)
    total_requirements: int = Field(..., ge=0)
    compliant_count: int = Field(default=0, ge=0)
    partial_count: int = Field(default=0, ge=0)
    non_compliant_count: int = Field(default=0, ge=0)
    missing_count: int = Field(default=0, ge=0)
    expired_count: int = Field(default=0, ge=0)
    policy_results: list[PolicyComparisonResult] = Field(default_factory=list)
    analyzed_at: datetime
