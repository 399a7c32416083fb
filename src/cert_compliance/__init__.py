"""Insurance certificate parsing and contract compliance checks."""

from cert_compliance.core.comparison import ComplianceComparator, InvalidInputError, compare
from cert_compliance.core.parser import CertificateParser, parse
from cert_compliance.core.policy_types import normalize_policy_type

__all__ = [
    "CertificateParser",
    "ComplianceComparator",
    "InvalidInputError",
    "compare",
    "normalize_policy_type",
    "parse",
]
