"""Certificate parser: OCR text -> :class:`ExtractedCertificateData`.

The parser never raises on malformed input. Every field it cannot resolve is
left unset and pulls the confidence score down instead.
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import date
from typing import Optional

from loguru import logger

from cert_compliance.core.amounts import (
    DEDUCTIBLE_LABEL,
    DEFAULT_WINDOW,
    GENERIC_LIMIT_LABEL,
    ID_NUMBER_PATTERN,
    PER_OCCURRENCE_LABEL,
    PER_PERIOD_LABEL,
    POLICY_NUMBER_PATTERN,
    AmountExtractor,
    compute_exclusion_zones,
)
from cert_compliance.core.codes import (
    ADDITIONAL_INSURED_CODES,
    INSURERS,
    WAIVER_OF_SUBROGATION_CODES,
)
from cert_compliance.core.policy_types import heading_table, normalize_policy_type
from cert_compliance.core.segmentation import Section, segment
from cert_compliance.schemas.certificate import (
    AdditionalInsured,
    CertificateParty,
    ExtractedCertificateData,
    ExtractedPolicy,
    PolicyType,
)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_DATE = r"(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})(?!\d)"
_SEP = r"\s*[:\-]?\s*"

EFFECTIVE_DATE_PATTERN = re.compile(
    r"(?:תאריך\s+תחילה|ת\.\s*תחילה|מתאריך|effective\s+date|start\s+date)" + _SEP + _DATE,
    re.IGNORECASE,
)
EXPIRATION_DATE_PATTERN = re.compile(
    r"(?:תאריך\s+סיום|ת\.\s*סיום|תאריך\s+תפוגה|עד\s+תאריך|expiration\s+date|expiry\s+date|end\s+date)"
    + _SEP + _DATE,
    re.IGNORECASE,
)
PERIOD_PATTERN = re.compile(
    r"(?:תקופת\s+ה?ביטוח|policy\s+period)" + _SEP + _DATE + r"\s*(?:-|–|עד|to)\s*" + _DATE,
    re.IGNORECASE,
)
RETROACTIVE_DATE_PATTERN = re.compile(
    r"(?:תאריך\s+רטרו(?:אקטיבי)?|retroactive\s+date)" + _SEP + _DATE,
    re.IGNORECASE,
)
ISSUE_DATE_PATTERN = re.compile(
    r"(?:תאריך\s+הנפקת\s+האישור|תאריך\s+הנפקה|issue\s+date)" + _SEP + _DATE,
    re.IGNORECASE,
)

CERTIFICATE_NUMBER_PATTERNS = (
    re.compile(r"אסמכתא" + _SEP + r"(\d+)"),
    re.compile(r"מספר\s+ה?אישור" + _SEP + r"([\w\-/]+)"),
    re.compile(r"certificate\s*(?:no\.?|number|#)" + _SEP + r"([\w\-/]+)", re.IGNORECASE),
)

ENDORSEMENTS_LABEL = re.compile(
    r"(?:הרחבות|קודי\s+הרחב(?:ה|ות)|כיסויים\s+נוספים|endorsements?)\s*[:\-]?",
    re.IGNORECASE,
)
_ENDORSEMENT_TOKEN_RE = re.compile(r"\d{2,4}")
_TOKEN_SPLIT_RE = re.compile(r"[,;\s]+")

CONDITIONS_PATTERN = re.compile(
    r"^\s*(?:תנאים(?:\s+מיוחדים)?|הערות|(?:special\s+)?conditions)\s*[:\-]\s*(?P<text>.+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)
POLICY_WORDING_PATTERN = re.compile(r"(?<!\w)(?:ביט|BIT)(?!\w)(?:\s*(?P<year>\d{4}))?", re.IGNORECASE)
_USD_RE = re.compile(r"\$|\bUSD\b|דולר", re.IGNORECASE)
_EUR_RE = re.compile(r"€|\bEUR\b|יורו", re.IGNORECASE)

INSURED_LABEL = re.compile(
    r"(?:שם\s+המבוטח|insured\s+name|(?:המבוטח|insured)(?=\s*:))" + _SEP,
    re.IGNORECASE,
)
REQUESTER_LABEL = re.compile(
    r"(?:מבקש\s+האישור(?:\s+הראשי)?|certificate\s+holder)" + _SEP + r"(?:שם" + _SEP + r")?",
    re.IGNORECASE,
)
SERVICE_CODE_PATTERN = re.compile(r"קוד\s*ה?שירות" + _SEP + r"(\d{2,3})(?!\d)")

_INSURER_PATTERNS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (
        canonical,
        re.compile(
            r"(?<!\w)(?:" + "|".join(re.escape(v) for v in variants) + r")(?!\w)",
            re.IGNORECASE,
        ),
    )
    for canonical, variants in INSURERS.items()
)

_ID_LABEL_RE = re.compile(r"(?<!\w)(?:ת\.?\s?ז\.?|ח\.?\s?פ\.?)(?=\s*[:./]?\s*[\d/])")

# Characters after a party label searched for its ID number.
_PARTY_ID_WINDOW = 200


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_date(day: str, month: str, year: str) -> Optional[date]:
    if len(year) == 2:
        year = ("19" if int(year) > 50 else "20") + year
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _find_date(pattern: re.Pattern, text: str) -> Optional[date]:
    match = pattern.search(text)
    return _to_date(*match.groups()[:3]) if match else None


def extract_endorsement_codes(text: str) -> frozenset[str]:
    """Collect 2-4 digit codes listed on the same line as an endorsements label."""
    codes: set[str] = set()
    for label in ENDORSEMENTS_LABEL.finditer(text):
        line_end = text.find("\n", label.end())
        rest = text[label.end():] if line_end == -1 else text[label.end():line_end]
        for token in _TOKEN_SPLIT_RE.split(rest):
            token = token.strip(".()[]")
            if _ENDORSEMENT_TOKEN_RE.fullmatch(token):
                codes.add(token)
    return frozenset(codes)


def derive_additional_insured(policies: list[ExtractedPolicy]) -> AdditionalInsured:
    """Certificate-level flags from the union of every policy's endorsement codes."""
    codes = frozenset().union(*(p.endorsement_codes for p in policies))
    return AdditionalInsured(
        is_named_as_additional=bool(codes & ADDITIONAL_INSURED_CODES),
        waiver_of_subrogation=bool(codes & WAIVER_OF_SUBROGATION_CODES),
    )


def find_insurer(text: str) -> Optional[str]:
    """Canonical name of the insurer on the first line that mentions one."""
    for line in text.splitlines():
        hits = []
        for canonical, pattern in _INSURER_PATTERNS:
            match = pattern.search(line)
            if match:
                hits.append((match.start(), canonical))
        if hits:
            return min(hits)[1]
    return None


def find_policy_wording(text: str) -> Optional[str]:
    """Policy wording edition such as ``"ביט 2019"`` (``"ביט"`` when undated)."""
    match = POLICY_WORDING_PATTERN.search(text)
    if match is None:
        return None
    return f"ביט {match.group('year')}" if match.group("year") else "ביט"


def _find_party(label: re.Pattern, text: str) -> Optional[CertificateParty]:
    match = label.search(text)
    if match is None:
        return None

    line_end = text.find("\n", match.end())
    line = text[match.end():] if line_end == -1 else text[match.end():line_end]
    id_label = _ID_LABEL_RE.search(line)
    name = (line[:id_label.start()] if id_label else line).strip(" ,:-\t\r")

    id_match = ID_NUMBER_PATTERN.search(text, match.end(), match.end() + _PARTY_ID_WINDOW)
    party = CertificateParty(
        name=name or None,
        id=id_match.group("number") if id_match else None,
    )
    return party if party.name or party.id else None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class CertificateParser:
    """Turn raw OCR text of a certificate into structured policy records.

    Parameters
    ----------
    amount_window:
        Character budget after a limit/deductible label in which its value
        may appear.
    """

    def __init__(self, amount_window: int = DEFAULT_WINDOW) -> None:
        self.amounts = AmountExtractor(window=amount_window)
        self.headings = heading_table()

    def parse(self, full_text: Optional[str]) -> ExtractedCertificateData:
        """Parse *full_text* into an :class:`ExtractedCertificateData`.

        Always returns a structurally valid result, possibly with no policies.
        """
        text = full_text or ""
        sections = segment(text, self.headings)

        policies: list[ExtractedPolicy] = []
        for section in sections:
            if not section.body.strip():
                logger.debug("Dropping empty section {heading!r}", heading=section.raw_heading)
                continue
            policies.append(self.parse_section(section))

        repeated = [t.value for t, n in Counter(p.policy_type for p in policies).items() if n > 1]
        if repeated:
            logger.debug("Policy types with more than one section: {types}", types=repeated)

        # Party details live in the header block above the first policy section.
        preamble = text[:sections[0].start_offset] if sections[0].raw_heading else text

        certificate_number = self._certificate_number(text)
        issue_date = _find_date(ISSUE_DATE_PATTERN, text)
        insurer_name = find_insurer(text)
        insured = _find_party(INSURED_LABEL, preamble)

        metadata = (certificate_number, issue_date, insurer_name, insured)
        populated = sum(1 for value in metadata if value is not None)
        confidence = (populated + sum(p.confidence for p in policies)) / (len(metadata) + len(policies))

        data = ExtractedCertificateData(
            certificate_number=certificate_number,
            issue_date=issue_date,
            insurer_name=insurer_name,
            insured=insured,
            requester=_find_party(REQUESTER_LABEL, preamble),
            service_codes=self._service_codes(text),
            policies=policies,
            additional_insured=derive_additional_insured(policies),
            confidence=round(confidence, 2),
        )
        logger.info(
            "Parsed certificate {num}: {n} policies, confidence={conf}",
            num=certificate_number or "<unknown>",
            n=len(policies),
            conf=data.confidence,
        )
        return data

    def parse_section(self, section: Section) -> ExtractedPolicy:
        """Extract one :class:`ExtractedPolicy` from a section body."""
        body = section.body
        zones = compute_exclusion_zones(body)

        per_period = self.amounts.extract(body, PER_PERIOD_LABEL, zones)
        per_occurrence = self.amounts.extract(body, PER_OCCURRENCE_LABEL, zones)
        if per_period is None or per_occurrence is None:
            generic = self.amounts.extract(body, GENERIC_LIMIT_LABEL, zones)
            per_period = per_period if per_period is not None else generic
            per_occurrence = per_occurrence if per_occurrence is not None else generic
        deductible = self.amounts.extract(body, DEDUCTIBLE_LABEL, zones)

        number_match = POLICY_NUMBER_PATTERN.search(body)
        policy_number = re.sub(r"\s+", "", number_match.group("number")) if number_match else None

        effective_date = _find_date(EFFECTIVE_DATE_PATTERN, body)
        expiration_date = _find_date(EXPIRATION_DATE_PATTERN, body)
        period = PERIOD_PATTERN.search(body)
        if period:
            effective_date = effective_date or _to_date(*period.groups()[:3])
            expiration_date = expiration_date or _to_date(*period.groups()[3:])

        policy_type = normalize_policy_type(section.raw_heading)
        endorsement_codes = extract_endorsement_codes(body)

        attempted = (
            policy_type is not PolicyType.UNKNOWN,
            policy_number is not None,
            per_period is not None,
            per_occurrence is not None,
            deductible is not None,
            effective_date is not None,
            expiration_date is not None,
            bool(endorsement_codes),
        )

        policy = ExtractedPolicy(
            policy_type=policy_type,
            policy_type_he=section.raw_heading,
            policy_number=policy_number,
            coverage_limit_per_period=per_period,
            coverage_limit_per_occurrence=per_occurrence,
            deductible=deductible,
            effective_date=effective_date,
            expiration_date=expiration_date,
            retroactive_date=_find_date(RETROACTIVE_DATE_PATTERN, body),
            currency=self._currency(body),
            policy_wording=find_policy_wording(body),
            endorsement_codes=endorsement_codes,
            conditions=[m.group("text") for m in CONDITIONS_PATTERN.finditer(body)],
            confidence=round(sum(attempted) / len(attempted), 2),
        )
        logger.debug(
            "Section {heading!r} -> {type} (period={period}, occurrence={occ}, codes={codes})",
            heading=section.raw_heading,
            type=policy.policy_type.value,
            period=per_period,
            occ=per_occurrence,
            codes=sorted(endorsement_codes),
        )
        return policy

    # ── Certificate-level helpers ───────────────────────────────────────

    @staticmethod
    def _certificate_number(text: str) -> Optional[str]:
        for pattern in CERTIFICATE_NUMBER_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
        return None

    @staticmethod
    def _service_codes(text: str) -> list[str]:
        codes: list[str] = []
        for match in SERVICE_CODE_PATTERN.finditer(text):
            code = match.group(1).zfill(3)
            if code not in codes:
                codes.append(code)
        return codes

    @staticmethod
    def _currency(text: str) -> str:
        if _USD_RE.search(text):
            return "USD"
        if _EUR_RE.search(text):
            return "EUR"
        return "ILS"


_default_parser = CertificateParser()


def parse(full_text: Optional[str]) -> ExtractedCertificateData:
    """Parse certificate text with the default :class:`CertificateParser`."""
    return _default_parser.parse(full_text)
