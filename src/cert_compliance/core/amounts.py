"""Labeled monetary-amount extraction with identifier exclusion zones.

OCR output puts policy numbers, company IDs and coverage limits next to each
other, often on the same table row. Amounts are therefore only read from a
bounded window after an explicit label, and any number that belongs to a
policy-number or ID field is masked out before the scan.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from loguru import logger

ExclusionZone = tuple[int, int]
Label = Union[str, re.Pattern]

# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

PER_PERIOD_LABEL = re.compile(
    r"גבול\s+ה?אחריות[^\d\n:]*?לתקופה|(?:limit\s+)?per\s+period|aggregate(?:\s+limit)?",
    re.IGNORECASE,
)
PER_OCCURRENCE_LABEL = re.compile(
    r"גבול\s+ה?אחריות[^\d\n:]*?למקרה|(?:limit\s+)?per\s+occurrence|each\s+occurrence",
    re.IGNORECASE,
)
# Unqualified limit; never matches a per-period or per-occurrence label.
GENERIC_LIMIT_LABEL = re.compile(
    r"(?:גבול\s+ה?אחריות|limit\s+of\s+liability|coverage\s+limit)"
    r"(?![^\d\n:]*?(?:לתקופה|למקרה|per\s+(?:period|occurrence)|each\s+occurrence|aggregate))",
    re.IGNORECASE,
)
DEDUCTIBLE_LABEL = re.compile(r"השתתפות\s+עצמית|deductible", re.IGNORECASE)

# Identifier fields; the named group ``number`` is the span to exclude.
POLICY_NUMBER_PATTERN = re.compile(
    r"(?<!\w)(?:(?:מספר\s*ה?)?פוליסה(?:\s*(?:מס['׳]?|מספר))?|policy\s*(?:no\.?|number|#))"
    r"\s*[:.]?\s*(?P<number>\d+(?:\s?-\s?\d+)*)(?!\d|,\d{3})",
    re.IGNORECASE,
)
ID_NUMBER_PATTERN = re.compile(
    r"(?<!\w)(?:ח\.?\s?פ\.?|ת\.?\s?ז\.?|company\s+id)\s*[:.]?\s*(?P<number>\d+(?:-\d+)*)(?!\d|,\d{3})",
    re.IGNORECASE,
)

# Any field label; an amount window never runs past the next one.
FIELD_LABEL_PATTERN = re.compile(
    r"גבול\s+ה?אחריות|השתתפות\s+עצמית|מספר\s*ה?פוליסה|תאריך|ת\.\s*(?:תחילה|סיום)"
    r"|הרחבות|קוד|מטבע|ח\.?\s?פ\.|ת\.?\s?ז\."
    r"|\blimit\b|per\s+(?:period|occurrence)|aggregate|deductible|policy\s*(?:no|number)",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

_NUMBER_RE = re.compile(r"(?<![\d,./\-])(?P<digits>\d{1,3}(?:,\d{3})+|\d+)(?P<fraction>\.\d+)?")
_MILLION_RE = re.compile(r"\s*מי?ליון")
_SHEKEL_AFTER_RE = re.compile(r"\s*₪")
_GLUED_AFTER_RE = re.compile(r"[/\-%]|\.\d")

DEFAULT_WINDOW = 120


def compute_exclusion_zones(text: str) -> list[ExclusionZone]:
    """Spans of every policy-number and ID-number value in *text*."""
    zones: list[ExclusionZone] = []
    for pattern in (POLICY_NUMBER_PATTERN, ID_NUMBER_PATTERN):
        for match in pattern.finditer(text):
            zones.append(match.span("number"))
    return sorted(zones)


def _overlaps(span: ExclusionZone, zones: list[ExclusionZone]) -> bool:
    start, end = span
    return any(start < zone_end and zone_start < end for zone_start, zone_end in zones)


class AmountExtractor:
    """Find the monetary value that belongs to a given field label.

    Parameters
    ----------
    window:
        Maximum number of characters after the label in which a value may
        start. The window is also cut at the next field label.
    """

    def __init__(self, window: int = DEFAULT_WINDOW) -> None:
        self.window = window

    def extract(
        self,
        section_text: str,
        label: Label,
        exclusion_zones: Optional[list[ExclusionZone]] = None,
    ) -> Optional[int]:
        """Return the amount following the first occurrence of *label*.

        *label* is a regular expression (string or compiled). Tokens marked as
        money (``₪`` or ``מיליון``) are preferred over bare numbers in the same
        window. Returns ``None`` when the label is absent or no qualifying
        token follows it.
        """
        if not section_text:
            return None
        pattern = re.compile(label, re.IGNORECASE) if isinstance(label, str) else label
        anchor = pattern.search(section_text)
        if anchor is None:
            return None

        zones = exclusion_zones or []
        start = anchor.end()
        boundary = FIELD_LABEL_PATTERN.search(section_text, start)
        end = boundary.start() if boundary else len(section_text)

        first_plain: Optional[int] = None
        for match in _NUMBER_RE.finditer(section_text, start, end):
            if match.start() - start > self.window:
                break
            if _overlaps(match.span(), zones):
                logger.debug(
                    "Skipping identifier {token} after label {label!r}",
                    token=match.group(0),
                    label=anchor.group(0),
                )
                continue
            after = match.end()
            if _GLUED_AFTER_RE.match(section_text, after):
                # Part of a date, identifier or percentage.
                continue

            value = float(match.group("digits").replace(",", "") + (match.group("fraction") or ""))
            if _MILLION_RE.match(section_text, after, end):
                return int(round(value * 1_000_000))
            if _SHEKEL_AFTER_RE.match(section_text, after, end) or self._shekel_before(
                section_text, match.start()
            ):
                return int(value)
            if first_plain is None:
                first_plain = int(value)

        return first_plain

    @staticmethod
    def _shekel_before(text: str, position: int) -> bool:
        return text[max(0, position - 3):position].rstrip().endswith("₪")
