"""
Regex extraction primitives for shotlist markdown.

Each heuristic lives behind its own function so it can be tested (or swapped
for a small scanner) on its own. None of these raise: a missing pattern yields
an empty string, ``(0.0, 0.0)`` or an empty list.
"""

import re
from typing import List, NamedTuple, Tuple

from shotplanner.utils.timecode import parse_timestamp

CODE_FENCE = "```"

# ### ═══════ INTRO (0:00.00 – 0:12.40) ═══════
SECTION_BANNER_RE = re.compile(r"###\s*[═=]{3,}\s*(.+?)\s*\(([^)]+)\)\s*[═=]{3,}")
# **Shot A2 — "Rules First"**
SHOT_HEADING_RE = re.compile(r"\*\*Shot\s+(\w+)\s*[—–-]\s*(.+?)\*\*")
# CUT 2 (0:13.04 – 0:14.80): close on the hands
TAKE_LINE_RE = re.compile(r"CUT\s+(\d+)\s*\(([^)]+)\):\s*(.+?)(?:\n|$)")
# ## SHOT 3 (optional) — The Mentor
CHARACTER_HEADING_RE = re.compile(r"## SHOT (\d+)(?:\s*\(([^)]*)\))?\s*[—–-]\s*(.+?)(?:\n|$)")

TIME_RANGE_RE = re.compile(r"(\d+:\d+\.\d+)\s*[–—-]\s*(\d+:\d+\.\d+)")
TITLE_HEADING_RE = re.compile(r"^#\s+(.+?)$", re.MULTILINE)
BPM_RE = re.compile(r"(\d{2,3})\s*BPM", re.IGNORECASE)
ITALIC_RE = re.compile(r"(?<!\*)\*([^*\n]+)\*(?!\*)")
MULTI_MARKERS_RE = re.compile(r"RAPID\s*CUT|MULTI|⚡", re.IGNORECASE)

LTX_PROMPT_MARKER = "**LTX-2 Prompt"
REF_PROMPT_MARKER = "**Ref Image Prompt"


class Heading(NamedTuple):
    label: str
    detail: str
    index: int


def extract_code_block(text: str, start: int = 0) -> str:
    """Trimmed content of the first fenced block at or after ``start``."""
    fence = text.find(CODE_FENCE, start)
    if fence == -1:
        return ""
    newline = text.find("\n", fence)
    if newline == -1:
        return ""
    content_start = newline + 1
    end = text.find(CODE_FENCE, content_start)
    if end == -1:
        return ""
    return text[content_start:end].strip()


def extract_code_block_after(text: str, marker: str) -> str:
    idx = text.find(marker)
    if idx == -1:
        return ""
    return extract_code_block(text, idx)


def extract_time_range(text: str) -> Tuple[float, float]:
    match = TIME_RANGE_RE.search(text or "")
    if not match:
        return 0.0, 0.0
    return parse_timestamp(match.group(1)), parse_timestamp(match.group(2))


def extract_field(text: str, label: str) -> str:
    """Value of ``**Label:** value`` (or ``- **Label:** value``), first line only."""
    patterns = [
        re.compile(rf"\*\*{re.escape(label)}:\*\*\s*(.+?)(?:\n|$)", re.IGNORECASE),
        re.compile(rf"- \*\*{re.escape(label)}:\*\*\s*(.+?)(?:\n|$)", re.IGNORECASE),
    ]
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return ""


def extract_title(text: str, default: str) -> str:
    match = TITLE_HEADING_RE.search(text)
    return match.group(1).strip() if match else default


def extract_bpm(text: str, default: int = 120) -> int:
    match = BPM_RE.search(text)
    return int(match.group(1)) if match else default


def extract_description(text: str) -> str:
    match = ITALIC_RE.search(text)
    return match.group(1).strip() if match else ""


def determine_shot_type(text: str) -> str:
    return "multi" if MULTI_MARKERS_RE.search(text) else "solo"


def find_section_banners(text: str) -> List[Heading]:
    return [Heading(m.group(1).strip(), m.group(2).strip(), m.start()) for m in SECTION_BANNER_RE.finditer(text)]


def find_shot_headings(text: str) -> List[Heading]:
    return [
        Heading(m.group(1).strip(), m.group(2).strip().replace('"', ""), m.start())
        for m in SHOT_HEADING_RE.finditer(text)
    ]


def split_spans(text: str, headings: List[Heading]) -> List[Tuple[Heading, str]]:
    """Pair each heading with the text from its offset to the next heading (or the end)."""
    spans = []
    for i, heading in enumerate(headings):
        end = headings[i + 1].index if i + 1 < len(headings) else len(text)
        spans.append((heading, text[heading.index:end]))
    return spans


def find_take_ref_prompt(shot_text: str, take_number: int) -> str:
    """
    Reference-image prompt written for one cut of a multi shot.

    Tries ``Ref Image Prompt — Cut N`` / ``Angle N`` first, then any ref-prompt
    heading that mentions N. The loose fallback scans the whole shot span and
    can pick up an unrelated heading that happens to contain the same digit.
    """
    patterns = [
        re.compile(rf"\*\*Ref Image Prompt\s*[—–-]\s*(?:Cut\s*{take_number}|Angle\s*{take_number})[^*]*\*\*", re.IGNORECASE),
        re.compile(rf"\*\*Ref Image Prompt\s*[—–-][^*]*{take_number}[^*]*\*\*", re.IGNORECASE),
    ]
    for pattern in patterns:
        match = pattern.search(shot_text)
        if match:
            return extract_code_block(shot_text, match.start())
    return ""
