"""Split certificate text into one section per policy-type heading."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from cert_compliance.core.policy_types import fold_geresh


class Section(BaseModel):
    """A contiguous block of text belonging to one policy heading."""

    model_config = {"frozen": True}

    raw_heading: Optional[str]
    body: str
    start_offset: int
    end_offset: int


def _lines_with_offsets(text: str) -> Iterable[tuple[int, int, str]]:
    """Yield ``(line_start, next_line_start, line)`` for every line in *text*."""
    position = 0
    for line in text.splitlines(keepends=True):
        yield position, position + len(line), line
        position += len(line)


def _is_heading(line: str, headings: tuple[str, ...]) -> bool:
    candidate = fold_geresh(line.strip())
    if not candidate:
        return False
    for heading in headings:
        if candidate == heading:
            return True
        # "starts with" only on a word boundary: "רכוש" must not open "רכושים".
        if candidate.startswith(heading) and not candidate[len(heading)].isalnum():
            return True
    return False


def segment(full_text: Optional[str], heading_table: Iterable[str]) -> list[Section]:
    """Split *full_text* into ordered sections.

    A trimmed line that equals or starts with an entry of *heading_table*
    opens a new section; its body runs to the next heading line or the end of
    the text. Text before the first heading is not part of any section. If no
    heading is found, the whole text is returned as one section without a
    heading. Repeated headings produce separate sections.
    """
    text = full_text or ""
    headings = tuple(fold_geresh(h.strip()) for h in heading_table if h and h.strip())

    starts: list[tuple[int, int, str]] = [
        (line_start, body_start, line.strip())
        for line_start, body_start, line in _lines_with_offsets(text)
        if _is_heading(line, headings)
    ]

    if not starts:
        logger.debug("No policy headings found; treating text as a single section")
        return [Section(raw_heading=None, body=text, start_offset=0, end_offset=len(text))]

    sections: list[Section] = []
    for i, (line_start, body_start, heading) in enumerate(starts):
        end = starts[i + 1][0] if i + 1 < len(starts) else len(text)
        sections.append(
            Section(
                raw_heading=heading,
                body=text[body_start:end],
                start_offset=line_start,
                end_offset=end,
            )
        )

    logger.debug("Segmented text into {n} sections", n=len(sections))
    return sections
