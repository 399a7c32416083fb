"""Pydantic models for contractual insurance requirements."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from cert_compliance.schemas.certificate import SCHEMA_CONFIG, PolicyType


class PolicyRequirement(BaseModel):
    """A single policy the contract requires, with its minimum terms."""

    model_config = SCHEMA_CONFIG

    policy_type: PolicyType = Field(..., description="Required canonical policy type")
    policy_type_he: Optional[str] = Field(default=None, description="Hebrew display name")
    minimum_limit_per_period: int = Field(default=0, ge=0)
    minimum_limit_per_occurrence: int = Field(default=0, ge=0)
    maximum_deductible: Optional[int] = Field(default=None, ge=0)
    required_endorsements: frozenset[str] = Field(
        default_factory=frozenset, description="Endorsement codes that must appear on the policy"
    )
    require_additional_insured: Optional[bool] = None
    require_waiver_of_subrogation: Optional[bool] = None
    minimum_validity_days: Optional[int] = Field(
        default=None, ge=0, description="Days the policy must remain valid from the analysis date"
    )
    currency: Optional[str] = Field(default=None, description="Required ISO currency code")
    policy_wording: Optional[str] = Field(default=None, description="Required wording, e.g. 'ביט'")
    is_mandatory: bool = True

    @field_serializer("required_endorsements")
    def _sorted_codes(self, codes: frozenset[str]) -> list[str]:
        return sorted(codes)


class RequirementTemplate(BaseModel):
    """Ordered set of requirements a certificate is checked against."""

    model_config = SCHEMA_CONFIG

    name: Optional[str] = None
    name_he: Optional[str] = None
    requirements: tuple[PolicyRequirement, ...] = Field(
        ..., description="Requirements in evaluation order"
    )
