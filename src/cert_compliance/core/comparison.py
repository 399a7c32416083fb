"""Compliance comparison: extracted certificate vs. requirement template.

Each requirement is matched to at most one extracted policy of the same type
and evaluated along independent dimensions (limits, deductible, endorsements,
validity, additional insured, currency, wording). The per-requirement
statuses are then weighted into a single score and overall status.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from loguru import logger
from pydantic import ValidationError

from cert_compliance.core.codes import describe_endorsement
from cert_compliance.core.policy_types import hebrew_name
from cert_compliance.schemas.certificate import ExtractedCertificateData, ExtractedPolicy
from cert_compliance.schemas.comparison import (
    ComparisonResult,
    ComplianceGap,
    ComplianceStatus,
    GapType,
    PolicyComparisonResult,
    Severity,
)
from cert_compliance.schemas.requirement import PolicyRequirement, RequirementTemplate

_POINTS = {
    ComplianceStatus.COMPLIANT: 100,
    ComplianceStatus.PARTIAL: 50,
}
_FAILING = frozenset(
    {ComplianceStatus.NON_COMPLIANT, ComplianceStatus.MISSING, ComplianceStatus.EXPIRED}
)


class InvalidInputError(ValueError):
    """Raised when a certificate or template cannot be validated."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate(model: type, value: Any, what: str):
    if value is None:
        raise InvalidInputError(f"{what} is required")
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {what}: {exc.error_count()} validation error(s)") from exc


def _money(amount: int) -> str:
    return f"₪{amount:,}"


def _display_names(requirement: PolicyRequirement) -> tuple[str, str]:
    en = requirement.policy_type.value
    he = requirement.policy_type_he or hebrew_name(requirement.policy_type) or en
    return en, he


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def select_best_match(
    policies: list[ExtractedPolicy], requirement: PolicyRequirement
) -> Optional[tuple[int, ExtractedPolicy]]:
    """Index and policy of the same-type policy with the highest per-period limit.

    Ties go to the policy that appears first in the certificate.
    """
    candidates = [
        (index, policy)
        for index, policy in enumerate(policies)
        if policy.policy_type == requirement.policy_type
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item[1].coverage_limit_per_period or 0)


# ---------------------------------------------------------------------------
# Comparator
# ---------------------------------------------------------------------------

class ComplianceComparator:
    """Score an :class:`ExtractedCertificateData` against a :class:`RequirementTemplate`."""

    def compare(
        self,
        certificate: Union[ExtractedCertificateData, dict],
        template: Union[RequirementTemplate, dict],
        now: Optional[datetime] = None,
    ) -> ComparisonResult:
        """Compare *certificate* with *template*.

        Parameters
        ----------
        certificate:
            Parsed certificate, as a model or a plain dict.
        template:
            Requirement template, as a model or a plain dict.
        now:
            Analysis time. Defaults to the current UTC time and determines
            "today" for expiry and validity checks.

        Returns
        -------
        ComparisonResult

        Raises
        ------
        InvalidInputError
            If either input is missing or fails validation.
        """
        template = _validate(RequirementTemplate, template, "template")
        certificate = _validate(ExtractedCertificateData, certificate, "certificate")
        now = now or datetime.now(timezone.utc)
        today = now.date()

        results = [
            self.compare_requirement(certificate, requirement, today)
            for requirement in template.requirements
        ]

        counts = {status: 0 for status in ComplianceStatus}
        for result in results:
            counts[result.status] += 1

        comparison = ComparisonResult(
            overall_status=self._overall_status(results),
            compliance_score=self._score(results),
            total_requirements=len(results),
            compliant_count=counts[ComplianceStatus.COMPLIANT],
            partial_count=counts[ComplianceStatus.PARTIAL],
            non_compliant_count=counts[ComplianceStatus.NON_COMPLIANT],
            missing_count=counts[ComplianceStatus.MISSING],
            expired_count=counts[ComplianceStatus.EXPIRED],
            policy_results=results,
            analyzed_at=now,
        )
        logger.info(
            "Compared certificate {num} against template {name}: {status} (score={score})",
            num=certificate.certificate_number or "<unknown>",
            name=template.name or "<unnamed>",
            status=comparison.overall_status.value,
            score=comparison.compliance_score,
        )
        return comparison

    def compare_requirement(
        self,
        certificate: ExtractedCertificateData,
        requirement: PolicyRequirement,
        today: date,
    ) -> PolicyComparisonResult:
        """Evaluate a single requirement against the certificate."""
        en, he = _display_names(requirement)
        match = select_best_match(certificate.policies, requirement)

        if match is None:
            logger.debug("No {type} policy on certificate", type=en)
            return PolicyComparisonResult(
                policy_type=requirement.policy_type,
                is_mandatory=requirement.is_mandatory,
                status=ComplianceStatus.MISSING,
                gaps=[
                    ComplianceGap(
                        type=GapType.MISSING_POLICY,
                        severity=Severity.CRITICAL if requirement.is_mandatory else Severity.MINOR,
                        description=f'Required policy "{en}" not found in certificate',
                        description_he=f'פוליסת "{he}" הנדרשת לא נמצאה באישור',
                        recommendation=f"Obtain {en} coverage",
                        recommendation_he=f"יש להשיג כיסוי {he}",
                    )
                ],
            )

        index, policy = match
        if policy.expiration_date is not None and policy.expiration_date < today:
            logger.debug("{type} policy expired on {date}", type=en, date=policy.expiration_date)
            return PolicyComparisonResult(
                policy_type=requirement.policy_type,
                is_mandatory=requirement.is_mandatory,
                status=ComplianceStatus.EXPIRED,
                policy_index=index,
                found_policy=policy,
                gaps=[
                    ComplianceGap(
                        type=GapType.EXPIRED,
                        severity=Severity.CRITICAL,
                        description="Policy has expired",
                        description_he="הפוליסה פגה",
                        recommendation="Renew policy immediately",
                        recommendation_he="יש לחדש את הפוליסה באופן מיידי",
                        found=policy.expiration_date.isoformat(),
                    )
                ],
            )

        gaps: list[ComplianceGap] = []
        flags = {
            "limit_compliant": self._check_limits(policy, requirement, gaps),
            "deductible_compliant": self._check_deductible(policy, requirement, gaps),
            "endorsements_compliant": self._check_endorsements(policy, requirement, gaps),
            "validity_compliant": self._check_validity(policy, requirement, today, gaps),
            "additional_insured_compliant": self._check_additional_insured(
                certificate, requirement, gaps
            ),
            "currency_compliant": self._check_currency(policy, requirement, gaps),
            "wording_compliant": self._check_wording(policy, requirement, gaps),
        }

        passed = sum(flags.values())
        if passed == len(flags):
            status = ComplianceStatus.COMPLIANT
        elif passed:
            status = ComplianceStatus.PARTIAL
        else:
            status = ComplianceStatus.NON_COMPLIANT

        return PolicyComparisonResult(
            policy_type=requirement.policy_type,
            is_mandatory=requirement.is_mandatory,
            status=status,
            policy_index=index,
            found_policy=policy,
            gaps=gaps,
            **flags,
        )

    # ── Dimensions ──────────────────────────────────────────────────────

    @staticmethod
    def _severity(requirement: PolicyRequirement, critical: bool = False) -> Severity:
        if not requirement.is_mandatory:
            return Severity.MINOR
        return Severity.CRITICAL if critical else Severity.MAJOR

    def _check_limits(
        self, policy: ExtractedPolicy, requirement: PolicyRequirement, gaps: list[ComplianceGap]
    ) -> bool:
        per_period = policy.coverage_limit_per_period or 0
        per_occurrence = policy.coverage_limit_per_occurrence or 0
        period_ok = per_period >= requirement.minimum_limit_per_period
        occurrence_ok = per_occurrence >= requirement.minimum_limit_per_occurrence
        if period_ok and occurrence_ok:
            return True

        severity = self._severity(requirement, critical=True)
        if not period_ok and not occurrence_ok:
            gaps.append(
                ComplianceGap(
                    type=GapType.INSUFFICIENT_LIMIT,
                    severity=severity,
                    description="Coverage limits per period and per occurrence are insufficient",
                    description_he="גבולות הכיסוי לתקופה ולמקרה אינם מספיקים",
                    recommendation=(
                        f"Increase coverage to at least {_money(requirement.minimum_limit_per_period)}"
                        f" per period and {_money(requirement.minimum_limit_per_occurrence)} per occurrence"
                    ),
                    recommendation_he=(
                        f"יש להגדיל את גבול הכיסוי לתקופה לפחות ל-{_money(requirement.minimum_limit_per_period)}"
                        f" ולמקרה לפחות ל-{_money(requirement.minimum_limit_per_occurrence)}"
                    ),
                    required=requirement.minimum_limit_per_period,
                    found=per_period,
                )
            )
        elif not period_ok:
            gaps.append(
                ComplianceGap(
                    type=GapType.INSUFFICIENT_LIMIT_PER_PERIOD,
                    severity=severity,
                    description="Coverage limit per period is insufficient",
                    description_he="גבול הכיסוי לתקופה אינו מספיק",
                    recommendation=(
                        f"Increase per-period coverage to at least {_money(requirement.minimum_limit_per_period)}"
                    ),
                    recommendation_he=(
                        f"יש להגדיל את גבול הכיסוי לתקופה לפחות ל-{_money(requirement.minimum_limit_per_period)}"
                    ),
                    required=requirement.minimum_limit_per_period,
                    found=per_period,
                )
            )
        else:
            gaps.append(
                ComplianceGap(
                    type=GapType.INSUFFICIENT_LIMIT_PER_OCCURRENCE,
                    severity=severity,
                    description="Coverage limit per occurrence is insufficient",
                    description_he="גבול הכיסוי למקרה אינו מספיק",
                    recommendation=(
                        "Increase per-occurrence coverage to at least "
                        f"{_money(requirement.minimum_limit_per_occurrence)}"
                    ),
                    recommendation_he=(
                        f"יש להגדיל את גבול הכיסוי למקרה לפחות ל-{_money(requirement.minimum_limit_per_occurrence)}"
                    ),
                    required=requirement.minimum_limit_per_occurrence,
                    found=per_occurrence,
                )
            )
        return False

    def _check_deductible(
        self, policy: ExtractedPolicy, requirement: PolicyRequirement, gaps: list[ComplianceGap]
    ) -> bool:
        if requirement.maximum_deductible is None:
            return True
        deductible = policy.deductible or 0
        if deductible <= requirement.maximum_deductible:
            return True
        gaps.append(
            ComplianceGap(
                type=GapType.EXCESSIVE_DEDUCTIBLE,
                severity=self._severity(requirement),
                description="Deductible exceeds maximum allowed",
                description_he="ההשתתפות העצמית עולה על המותר",
                recommendation=f"Reduce deductible to maximum {_money(requirement.maximum_deductible)}",
                recommendation_he=(
                    f"יש להפחית את ההשתתפות העצמית למקסימום {_money(requirement.maximum_deductible)}"
                ),
                required=requirement.maximum_deductible,
                found=deductible,
            )
        )
        return False

    def _check_endorsements(
        self, policy: ExtractedPolicy, requirement: PolicyRequirement, gaps: list[ComplianceGap]
    ) -> bool:
        missing = sorted(requirement.required_endorsements - policy.endorsement_codes)
        if not missing:
            return True

        labels_en, labels_he = [], []
        for code in missing:
            info = describe_endorsement(code)
            labels_en.append(f"{code} ({info['en']})" if info else code)
            labels_he.append(f"{code} ({info['he']})" if info else code)
        gaps.append(
            ComplianceGap(
                type=GapType.MISSING_ENDORSEMENT,
                severity=self._severity(requirement),
                description=f"Required endorsements not found: {', '.join(labels_en)}",
                description_he=f"הרחבות נדרשות לא נמצאו: {', '.join(labels_he)}",
                recommendation=f"Add endorsements {', '.join(missing)} to policy",
                recommendation_he=f"יש להוסיף את ההרחבות {', '.join(missing)} לפוליסה",
                required=", ".join(sorted(requirement.required_endorsements)),
                found=", ".join(sorted(policy.endorsement_codes)) or None,
            )
        )
        return False

    def _check_validity(
        self,
        policy: ExtractedPolicy,
        requirement: PolicyRequirement,
        today: date,
        gaps: list[ComplianceGap],
    ) -> bool:
        if requirement.minimum_validity_days is None:
            return True
        if policy.expiration_date is None:
            gaps.append(
                ComplianceGap(
                    type=GapType.INVALID_DATES,
                    severity=self._severity(requirement),
                    description="Policy expiration date could not be determined",
                    description_he="לא ניתן לקבוע את תאריך סיום הפוליסה",
                    recommendation="Verify the policy period on the certificate",
                    recommendation_he="יש לוודא את תקופת הביטוח באישור",
                    required=requirement.minimum_validity_days,
                )
            )
            return False

        days_left = (policy.expiration_date - today).days
        if days_left >= requirement.minimum_validity_days:
            return True
        gaps.append(
            ComplianceGap(
                type=GapType.EXPIRING_SOON,
                severity=self._severity(requirement),
                description=f"Policy expires in {days_left} days",
                description_he=f"הפוליסה פגה בעוד {days_left} ימים",
                recommendation="Renew policy before expiration",
                recommendation_he="יש לחדש את הפוליסה לפני פקיעתה",
                required=requirement.minimum_validity_days,
                found=days_left,
            )
        )
        return False

    def _check_additional_insured(
        self,
        certificate: ExtractedCertificateData,
        requirement: PolicyRequirement,
        gaps: list[ComplianceGap],
    ) -> bool:
        flags = certificate.additional_insured
        named_ok = not requirement.require_additional_insured or flags.is_named_as_additional
        waiver_ok = not requirement.require_waiver_of_subrogation or flags.waiver_of_subrogation
        if named_ok and waiver_ok:
            return True

        if named_ok:
            gaps.append(
                ComplianceGap(
                    type=GapType.MISSING_WAIVER_OF_SUBROGATION,
                    severity=self._severity(requirement),
                    description="Waiver of subrogation not included",
                    description_he="ויתור על זכות התחלוף לא כלול",
                    recommendation="Request waiver of subrogation clause",
                    recommendation_he="יש לבקש סעיף ויתור על זכות התחלוף",
                )
            )
        else:
            gaps.append(
                ComplianceGap(
                    type=GapType.MISSING_ADDITIONAL_INSURED,
                    severity=self._severity(requirement),
                    description="Certificate holder not named as additional insured",
                    description_he="מזמין העבודה לא רשום כמבוטח נוסף",
                    recommendation="Request to be added as additional insured",
                    recommendation_he="יש לבקש להירשם כמבוטח נוסף",
                )
            )
        return False

    def _check_currency(
        self, policy: ExtractedPolicy, requirement: PolicyRequirement, gaps: list[ComplianceGap]
    ) -> bool:
        if not requirement.currency:
            return True
        required = requirement.currency.upper()
        if policy.currency.upper() == required:
            return True
        gaps.append(
            ComplianceGap(
                type=GapType.WRONG_CURRENCY,
                severity=self._severity(requirement),
                description="Currency mismatch",
                description_he="אי התאמה במטבע",
                recommendation=f"Policy must be in {required}",
                recommendation_he=f"הפוליסה חייבת להיות במטבע {required}",
                required=required,
                found=policy.currency,
            )
        )
        return False

    def _check_wording(
        self, policy: ExtractedPolicy, requirement: PolicyRequirement, gaps: list[ComplianceGap]
    ) -> bool:
        if not requirement.policy_wording:
            return True
        required = requirement.policy_wording.strip()
        found = (policy.policy_wording or "").strip()
        if found and (required in found or found in required):
            return True
        gaps.append(
            ComplianceGap(
                type=GapType.WRONG_POLICY_WORDING,
                severity=self._severity(requirement),
                description="Policy wording mismatch",
                description_he="אי התאמה בנוסח הפוליסה",
                recommendation=f'Use "{required}" policy wording',
                recommendation_he=f'יש להשתמש בנוסח פוליסה "{required}"',
                required=required,
                found=found or None,
            )
        )
        return False

    # ── Aggregation ─────────────────────────────────────────────────────

    @staticmethod
    def _score(results: list[PolicyComparisonResult]) -> int:
        if not results:
            return 100
        total_weight = 0
        weighted = 0
        for result in results:
            weight = 2 if result.is_mandatory else 1
            total_weight += weight
            weighted += weight * _POINTS.get(result.status, 0)
        return _round_half_up(weighted / total_weight)

    @staticmethod
    def _overall_status(results: list[PolicyComparisonResult]) -> ComplianceStatus:
        if any(r.is_mandatory and r.status in _FAILING for r in results):
            return ComplianceStatus.NON_COMPLIANT
        if any(r.status is ComplianceStatus.PARTIAL for r in results):
            return ComplianceStatus.PARTIAL
        return ComplianceStatus.COMPLIANT


_default_comparator = ComplianceComparator()


def compare(
    certificate: Union[ExtractedCertificateData, dict],
    template: Union[RequirementTemplate, dict],
    now: Optional[datetime] = None,
) -> ComparisonResult:
    """Compare with the default :class:`ComplianceComparator`."""
    return _default_comparator.compare(certificate, template, now=now)
