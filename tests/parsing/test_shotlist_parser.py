import pytest

from shotplanner.parsing.shotlist import parse_shotlist_markdown

SHOTLIST = '''# Neon Rules — Shotlist

Tempo: 118 BPM

### ═══════ INTRO (0:00.00 – 0:12.40) ═══════
*Cold open on the city at night*

**Shot A1 — "Rules First"**
- **Concept:** Slow push toward the rooftop
- Timing: 0:00.00 – 0:06.20

**LTX-2 Prompt**
```
slow dolly in, neon rooftop, rain
```

**Ref Image Prompt**
```
rooftop at night, neon signage
```

**Shot A2 — "Count It In"** ⚡ RAPID CUT
- **Concept:** Hands on the drum machine
- Timing: 0:06.20 – 0:12.40

CUT 1 (0:06.20 – 0:08.00): close on the fingers
CUT 2 (0:08.00 – 0:12.40): wide of the booth

**LTX-2 Prompt**
```
rapid cuts, drum machine
```

**Ref Image Prompt — Cut 1**
```
macro fingers on pads
```

**Ref Image Prompt — Cut 2**
```
wide dj booth
```

### ═══════ VERSE 1 (0:12.40 – 0:40.10) ═══════
*The walk*

**Shot B1 — Street Walk**
- **Concept:** Tracking shot down the alley
'''


def test_project_title_and_bpm():
    project = parse_shotlist_markdown(SHOTLIST)
    assert project.name == "Neon Rules — Shotlist"
    assert project.bpm == 118


def test_sections_with_timing_and_description():
    project = parse_shotlist_markdown(SHOTLIST)
    assert [s.name for s in project.sections] == ["INTRO", "VERSE 1"]
    intro, verse = project.sections
    assert intro.start_time == 0.0
    assert intro.end_time == pytest.approx(12.4)
    assert intro.description == "Cold open on the city at night"
    assert verse.start_time == pytest.approx(12.4)
    assert verse.end_time == pytest.approx(40.1)
    assert verse.description == "The walk"


def test_solo_shot_fields():
    shot = parse_shotlist_markdown(SHOTLIST).sections[0].shots[0]
    assert shot.name == "A1 — Rules First"
    assert shot.lyric == "Rules First"
    assert shot.type == "solo"
    assert shot.start_time == 0.0
    assert shot.end_time == pytest.approx(6.2)
    assert shot.concept == "Slow push toward the rooftop"
    assert shot.prompt == "slow dolly in, neon rooftop, rain"
    assert shot.ref_image_prompt == "rooftop at night, neon signage"
    assert shot.takes is None
    assert shot.ref_images == []
    assert shot.end_ref_images == []


def test_multi_shot_takes():
    shot = parse_shotlist_markdown(SHOTLIST).sections[0].shots[1]
    assert shot.type == "multi"
    assert shot.prompt == "rapid cuts, drum machine"
    assert [t.label for t in shot.takes] == ["Take 1", "Take 2"]
    assert [t.concept for t in shot.takes] == ["close on the fingers", "wide of the booth"]
    assert shot.takes[0].start_time == pytest.approx(6.2)
    assert shot.takes[1].end_time == pytest.approx(12.4)
    assert shot.takes[0].ref_image_prompt == "macro fingers on pads"
    assert shot.takes[1].ref_image_prompt == "wide dj booth"


def test_two_cut_lines_yield_exactly_two_takes():
    text = (
        "### === S (0:00.00 – 0:04.00) ===\n"
        "**Shot X1 — Burst** MULTI\n"
        "CUT 1 (0:00.00 – 0:02.00): A\n"
        "CUT 2 (0:02.00 – 0:04.00): B\n"
    )
    shot = parse_shotlist_markdown(text).sections[0].shots[0]
    assert len(shot.takes) == 2
    assert [t.label for t in shot.takes] == ["Take 1", "Take 2"]
    assert [t.concept for t in shot.takes] == ["A", "B"]


def test_ltx_prompt_code_block():
    text = "### === S (0:00.00 – 0:01.00) ===\n**Shot Z — T**\n**LTX-2 Prompt**\n```\nFOO\n```\n"
    assert parse_shotlist_markdown(text).sections[0].shots[0].prompt == "FOO"


def test_shot_without_timing_or_fields_degrades_to_defaults():
    shot = parse_shotlist_markdown(SHOTLIST).sections[1].shots[0]
    assert shot.name == "B1 — Street Walk"
    assert shot.start_time == 0.0
    assert shot.end_time == 0.0
    assert shot.prompt == ""
    assert shot.ref_image_prompt == ""


def test_ids_are_unique():
    project = parse_shotlist_markdown(SHOTLIST)
    ids = [project.id] + [s.id for s in project.sections]
    for section in project.sections:
        for shot in section.shots:
            ids.append(shot.id)
            ids.extend(t.id for t in shot.takes or [])
    assert len(ids) == len(set(ids))


def test_no_banners_yields_empty_project():
    project = parse_shotlist_markdown("just some notes\n\n**Shot A — orphan**\n")
    assert project.sections == []
    assert project.name == "Untitled Project"
    assert project.bpm == 120


def test_malformed_input_never_raises():
    for text in ["", "```", "### ═══ BROKEN (", "**Shot", None, 42, "### === A (x) ===\n**Shot 1 — t**\n```unterminated"]:
        project = parse_shotlist_markdown(text)
        assert isinstance(project.sections, list)
