import logging
from typing import List, Optional
from uuid import uuid4

from shotplanner.parsing.extract import CHARACTER_HEADING_RE, TITLE_HEADING_RE, extract_code_block
from shotplanner.parsing.shotlist import parse_shotlist_markdown
from shotplanner.project.models import Project, Section, Shot

logger = logging.getLogger(__name__)

DEFAULT_CHARACTER_SECTION = "CHARACTER ESTABLISHMENT"
CHARACTER_SECTION_DESCRIPTION = "Generate these FIRST — character bible reference shots"


def parse_character_establishment(content: str) -> List[Shot]:
    """
    Reference shots from a character-establishment document.

    Each ``## SHOT N [(note)] — Title`` heading becomes an untimed solo shot whose
    ref image prompt is the fenced block that follows the heading.
    """
    if not isinstance(content, str):
        return []
    shots: List[Shot] = []
    for m in CHARACTER_HEADING_RE.finditer(content):
        number = m.group(1)
        title = m.group(3).strip()
        shots.append(
            Shot(
                id=str(uuid4()),
                name=f"Character {number} — {title}",
                type="solo",
                concept=f"Character establishment: {title}",
                ref_image_prompt=extract_code_block(content, m.start()),
            )
        )
    return shots


def parse_all_markdown(shotlist_content: str, character_content: Optional[str] = None) -> Project:
    """Parse the shotlist and, when present, prepend a character-establishment section."""
    project = parse_shotlist_markdown(shotlist_content)
    if not character_content:
        return project

    character_shots = parse_character_establishment(character_content)
    if not character_shots:
        logger.info("Character document had no '## SHOT' headings; skipped")
        return project

    heading = TITLE_HEADING_RE.search(character_content)
    section_name = heading.group(1).strip().upper() if heading else DEFAULT_CHARACTER_SECTION
    project.sections.insert(
        0,
        Section(
            id=str(uuid4()),
            name=section_name,
            description=CHARACTER_SECTION_DESCRIPTION,
            shots=character_shots,
        ),
    )
    logger.info("Added %d character shots in section '%s'", len(character_shots), section_name)
    return project
