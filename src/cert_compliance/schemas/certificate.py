"""Pydantic models for data extracted from insurance certificates."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel

# Shared config: immutable, snake_case attributes, camelCase JSON.
SCHEMA_CONFIG = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


class PolicyType(str, Enum):
    """Canonical policy types found on Israeli insurance certificates."""

    GENERAL_LIABILITY = "GENERAL_LIABILITY"
    EMPLOYER_LIABILITY = "EMPLOYER_LIABILITY"
    PROFESSIONAL_INDEMNITY = "PROFESSIONAL_INDEMNITY"
    CONTRACTOR_ALL_RISKS = "CONTRACTOR_ALL_RISKS"
    PRODUCT_LIABILITY = "PRODUCT_LIABILITY"
    PROPERTY = "PROPERTY"
    CAR_THIRD_PARTY = "CAR_THIRD_PARTY"
    CAR_COMPULSORY = "CAR_COMPULSORY"
    CYBER_LIABILITY = "CYBER_LIABILITY"
    D_AND_O = "D_AND_O"
    UNKNOWN = "UNKNOWN"


class ExtractedPolicy(BaseModel):
    """One policy section of a certificate, as recovered from OCR text."""

    model_config = SCHEMA_CONFIG

    policy_type: PolicyType = Field(
        default=PolicyType.UNKNOWN, description="Canonical policy type"
    )
    policy_type_he: Optional[str] = Field(
        default=None, description="Section heading exactly as it appeared in the text"
    )
    policy_number: Optional[str] = Field(default=None, description="Policy number, e.g. 25-081-630-1055058")
    coverage_limit_per_period: Optional[int] = Field(
        default=None, ge=0, description="Aggregate limit for the policy period (base currency units)"
    )
    coverage_limit_per_occurrence: Optional[int] = Field(
        default=None, ge=0, description="Limit for a single claim event (base currency units)"
    )
    deductible: Optional[int] = Field(default=None, ge=0, description="Deductible (base currency units)")
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    retroactive_date: Optional[date] = Field(
        default=None, description="Retroactive date for claims-made policies"
    )
    currency: str = Field(default="ILS", description="ISO currency code of the monetary fields")
    policy_wording: Optional[str] = Field(default=None, description="Policy wording edition, e.g. 'ביט 2019'")
    endorsement_codes: frozenset[str] = Field(
        default_factory=frozenset, description="Standard endorsement codes listed for this policy"
    )
    conditions: list[str] = Field(default_factory=list, description="Free-text special conditions")
    confidence: float = Field(
        default=0.0, ge=0, le=1, description="Fraction of attempted fields that were populated"
    )

    @field_serializer("endorsement_codes")
    def _sorted_codes(self, codes: frozenset[str]) -> list[str]:
        return sorted(codes)


class AdditionalInsured(BaseModel):
    """Certificate-level flags derived from endorsement codes in every section."""

    model_config = SCHEMA_CONFIG

    is_named_as_additional: bool = False
    waiver_of_subrogation: bool = False


class CertificateParty(BaseModel):
    """A named party on the certificate (the insured or the requester)."""

    model_config = SCHEMA_CONFIG

    name: Optional[str] = None
    id: Optional[str] = Field(default=None, description="Company or personal ID (ח.פ. / ת.ז.)")


class ExtractedCertificateData(BaseModel):
    """Structured result of parsing one certificate."""

    certificate_number: Optional[str] = Field(default=None, description="Reference number (אסמכתא)")
    issue_date: Optional[date] = None
    insurer_name: Optional[str] = None
    insured: Optional[CertificateParty] = None
    requester: Optional[CertificateParty] = Field(
        default=None, description="The party requesting the certificate (מבקש האישור)"
    )
    service_codes: list[str] = Field(default_factory=list)
    policies: list[ExtractedPolicy] = Field(
        default_factory=list, description="Policies in the order their sections appear"
    )
    additional_insured: AdditionalInsured = Field(default_factory=AdditionalInsured)
    confidence: float = Field(default=0.0, ge=0, le=1)

    model_config = {**SCHEMA_CONFIG, "json_schema_extra": {
        "examples": [
            {
                "certificateNumber": "000050229",
                "insurerName": "הפניקס",
                "policies": [
                    {
                        "policyType": "GENERAL_LIABILITY",
                        "policyTypeHe": "צד שלישי",
                        "policyNumber": "25-081-630-1055058",
                        "coverageLimitPerPeriod": 5000000,
                        "coverageLimitPerOccurrence": 2000000,
                        "endorsementCodes": ["309", "318"],
                        "confidence": 0.62,
                    }
                ],
                "additionalInsured": {
                    "isNamedAsAdditional": True,
                    "waiverOfSubrogation": True,
                },
            }
        ]
    }}
