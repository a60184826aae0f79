"""
Markdown shotlist -> Project.

Expected layout (loosely; every piece is optional)::

    # Project Title            118 BPM

    ### ═══════ VERSE 1 (0:12.40 – 0:40.10) ═══════
    *Section description*

    **Shot A1 — "Rules First"**
    - **Concept:** ...
    **LTX-2 Prompt**
    ```
    ...
    ```

Sections without a banner and shots without a ``**Shot X — Title**`` heading
are invisible to the parser. Malformed input degrades to empty fields; the
parser never raises, so callers that need validation must check the result
(for example ``project.sections``).
"""

import logging
from typing import List
from uuid import uuid4

from shotplanner.parsing.extract import (
    LTX_PROMPT_MARKER,
    REF_PROMPT_MARKER,
    TAKE_LINE_RE,
    determine_shot_type,
    extract_bpm,
    extract_code_block_after,
    extract_description,
    extract_field,
    extract_time_range,
    extract_title,
    find_section_banners,
    find_shot_headings,
    find_take_ref_prompt,
    split_spans,
)
from shotplanner.project.models import Project, Section, Shot, Take

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Untitled Project"
DEFAULT_BPM = 120


def _new_id() -> str:
    return str(uuid4())


def parse_takes(shot_text: str) -> List[Take]:
    takes: List[Take] = []
    for m in TAKE_LINE_RE.finditer(shot_text):
        number = int(m.group(1))
        start_time, end_time = extract_time_range(m.group(2).strip())
        takes.append(
            Take(
                id=_new_id(),
                label=f"Take {number}",
                start_time=start_time,
                end_time=end_time,
                concept=m.group(3).strip(),
                ref_image_prompt=find_take_ref_prompt(shot_text, number),
            )
        )
    return takes


def parse_shot(shot_key: str, title: str, shot_text: str) -> Shot:
    shot_type = determine_shot_type(shot_text)
    start_time, end_time = extract_time_range(shot_text)
    shot = Shot(
        id=_new_id(),
        name=f"{shot_key} — {title}",
        type=shot_type,
        start_time=start_time,
        end_time=end_time,
        lyric=title,
        concept=extract_field(shot_text, "Concept"),
        prompt=extract_code_block_after(shot_text, LTX_PROMPT_MARKER),
        ref_image_prompt=extract_code_block_after(shot_text, REF_PROMPT_MARKER),
    )
    if shot_type == "multi":
        shot.takes = parse_takes(shot_text)
    return shot


def parse_shots_from_section(section_text: str) -> List[Shot]:
    headings = find_shot_headings(section_text)
    return [parse_shot(h.label, h.detail, span) for h, span in split_spans(section_text, headings)]


def parse_shotlist_markdown(content: str) -> Project:
    if not isinstance(content, str):
        content = ""

    sections: List[Section] = []
    for banner, span in split_spans(content, find_section_banners(content)):
        start_time, end_time = extract_time_range(banner.detail)
        sections.append(
            Section(
                id=_new_id(),
                name=banner.label,
                start_time=start_time,
                end_time=end_time,
                description=extract_description(span),
                shots=parse_shots_from_section(span),
            )
        )

    project = Project(
        id=_new_id(),
        name=extract_title(content, DEFAULT_PROJECT_NAME),
        bpm=extract_bpm(content, DEFAULT_BPM),
        sections=sections,
        default_params={},
    )
    shot_count = sum(len(s.shots) for s in sections)
    if not sections:
        logger.warning("Shotlist contained no section banners; project '%s' is empty", project.name)
    else:
        logger.info("Parsed shotlist '%s': %d sections, %d shots", project.name, len(sections), shot_count)
    return project
