"""Pydantic schemas for certificate extraction and compliance comparison."""

from cert_compliance.schemas.certificate import (
    AdditionalInsured,
    CertificateParty,
    ExtractedCertificateData,
    ExtractedPolicy,
    PolicyType,
)
from cert_compliance.schemas.comparison import (
    ComparisonResult,
    ComplianceGap,
    ComplianceStatus,
    GapType,
    PolicyComparisonResult,
    Severity,
)
from cert_compliance.schemas.requirement import PolicyRequirement, RequirementTemplate

__all__ = [
    "AdditionalInsured",
    "CertificateParty",
    "ComparisonResult",
    "ComplianceGap",
    "ComplianceStatus",
    "ExtractedCertificateData",
    "ExtractedPolicy",
    "GapType",
    "PolicyComparisonResult",
    "PolicyRequirement",
    "PolicyType",
    "RequirementTemplate",
    "Severity",
]
