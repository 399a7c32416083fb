"""Policy-type normalization: free text (Hebrew or English) -> ``PolicyType``."""

from __future__ import annotations

import re
from typing import Optional

from cert_compliance.schemas.certificate import PolicyType

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

HEBREW_NAMES: dict[PolicyType, str] = {
    PolicyType.GENERAL_LIABILITY: "צד שלישי",
    PolicyType.EMPLOYER_LIABILITY: "חבות מעבידים",
    PolicyType.PROFESSIONAL_INDEMNITY: "אחריות מקצועית",
    PolicyType.CONTRACTOR_ALL_RISKS: "כל הסיכונים עבודות קבלניות",
    PolicyType.PRODUCT_LIABILITY: "חבות מוצר",
    PolicyType.PROPERTY: "ביטוח רכוש",
    PolicyType.CAR_THIRD_PARTY: "ביטוח רכב צד ג'",
    PolicyType.CAR_COMPULSORY: "ביטוח חובה",
    PolicyType.CYBER_LIABILITY: "ביטוח סייבר",
    PolicyType.D_AND_O: "נושאי משרה",
}

HEBREW_ALIASES: dict[PolicyType, tuple[str, ...]] = {
    PolicyType.GENERAL_LIABILITY: (
        "צד ג'", "צד ג", "אחריות כלפי צד שלישי", "צד שלישי למקרה ולתקופה",
    ),
    PolicyType.EMPLOYER_LIABILITY: (
        "אחריות מעבידים", "חבות מעבידים לעובד", "ביטוח מעבידים",
    ),
    PolicyType.PROFESSIONAL_INDEMNITY: (
        "ביטוח מקצועי", "אחריות מקצועית למקרה", "אחריות מקצועית לתקופה",
    ),
    PolicyType.CONTRACTOR_ALL_RISKS: (
        "עבודות קבלניות", "ביטוח קבלנים", "כל הסיכונים",
    ),
    PolicyType.PRODUCT_LIABILITY: ("אחריות מוצר", "ביטוח מוצר"),
    PolicyType.PROPERTY: ("רכוש", "ביטוח מבנה", "ביטוח תכולה"),
    PolicyType.CAR_THIRD_PARTY: ("רכב צד שלישי", "נזק צד שלישי רכב", "רכב צד ג'"),
    PolicyType.CAR_COMPULSORY: ("חובה רכב", "ביטוח חובה רכב"),
    PolicyType.CYBER_LIABILITY: ("סייבר", "אחריות סייבר"),
    PolicyType.D_AND_O: ("דירקטורים ונושאי משרה", "ביטוח דירקטורים"),
}

# Ordered: more specific keywords first.
ENGLISH_KEYWORDS: tuple[tuple[str, PolicyType], ...] = (
    ("motor third party", PolicyType.CAR_THIRD_PARTY),
    ("car third party", PolicyType.CAR_THIRD_PARTY),
    ("vehicle third party", PolicyType.CAR_THIRD_PARTY),
    ("compulsory", PolicyType.CAR_COMPULSORY),
    ("third party", PolicyType.GENERAL_LIABILITY),
    ("general liability", PolicyType.GENERAL_LIABILITY),
    ("public liability", PolicyType.GENERAL_LIABILITY),
    ("employer", PolicyType.EMPLOYER_LIABILITY),
    ("professional", PolicyType.PROFESSIONAL_INDEMNITY),
    ("errors and omissions", PolicyType.PROFESSIONAL_INDEMNITY),
    ("indemnity", PolicyType.PROFESSIONAL_INDEMNITY),
    ("contractor", PolicyType.CONTRACTOR_ALL_RISKS),
    ("all risks", PolicyType.CONTRACTOR_ALL_RISKS),
    ("product", PolicyType.PRODUCT_LIABILITY),
    ("cyber", PolicyType.CYBER_LIABILITY),
    ("directors", PolicyType.D_AND_O),
    ("officers", PolicyType.D_AND_O),
    ("d&o", PolicyType.D_AND_O),
    ("property", PolicyType.PROPERTY),
)

_GERESH_RE = re.compile(r"[׳’‘`´]")
_SEPARATOR_RE = re.compile(r"[\s\-]+")
_ENUM_VALUES = {t.value for t in PolicyType}


def fold_geresh(text: str) -> str:
    """Replace the Hebrew geresh and apostrophe look-alikes with ``'``."""
    return _GERESH_RE.sub("'", text)


# Every Hebrew entry -> type, longest first so substring matching is specific.
_HEBREW_ENTRIES: tuple[tuple[str, PolicyType], ...] = tuple(
    sorted(
        [(name, t) for t, name in HEBREW_NAMES.items()]
        + [(alias, t) for t, aliases in HEBREW_ALIASES.items() for alias in aliases],
        key=lambda entry: len(entry[0]),
        reverse=True,
    )
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_policy_type(text: Optional[str]) -> PolicyType:
    """Map free text to a canonical :class:`PolicyType`.

    Resolution order (first match wins): enum identifier, Hebrew canonical
    name, Hebrew alias (exact, then longest substring), spaced English
    identifier, English keyword. Anything else is ``UNKNOWN``.
    """
    if not text or not text.strip():
        return PolicyType.UNKNOWN

    cleaned = fold_geresh(text.strip())

    if cleaned in _ENUM_VALUES:
        return PolicyType(cleaned)

    for policy_type, name in HEBREW_NAMES.items():
        if cleaned == name:
            return policy_type

    for policy_type, aliases in HEBREW_ALIASES.items():
        if cleaned in aliases:
            return policy_type

    for entry, policy_type in _HEBREW_ENTRIES:
        if entry in cleaned:
            return policy_type

    identifier = _SEPARATOR_RE.sub("_", cleaned).upper()
    if identifier in _ENUM_VALUES:
        return PolicyType(identifier)

    lowered = cleaned.lower()
    for keyword, policy_type in ENGLISH_KEYWORDS:
        if keyword in lowered:
            return policy_type

    return PolicyType.UNKNOWN


def heading_table() -> tuple[str, ...]:
    """All Hebrew canonical names and aliases, longest first."""
    return tuple(entry for entry, _ in _HEBREW_ENTRIES)


def hebrew_name(policy_type: PolicyType) -> Optional[str]:
    """Canonical Hebrew name for *policy_type* (``None`` for ``UNKNOWN``)."""
    return HEBREW_NAMES.get(policy_type)
