from shotplanner.parsing.extract import (
    determine_shot_type,
    extract_code_block,
    extract_description,
    extract_field,
    extract_time_range,
    find_shot_headings,
    find_take_ref_prompt,
)


def test_extract_code_block_from_offset():
    text = "intro\n```\nfirst\n```\nlater\n```text\n  second  \n```\n"
    assert extract_code_block(text) == "first"
    assert extract_code_block(text, text.index("later")) == "second"


def test_extract_code_block_missing_fences():
    assert extract_code_block("no fences") == ""
    assert extract_code_block("```") == ""
    assert extract_code_block("```\nopen only") == ""


def test_extract_time_range_accepts_dash_variants():
    assert extract_time_range("0:01.00 - 0:02.00") == (1.0, 2.0)
    assert extract_time_range("0:01.00—0:03.00") == (1.0, 3.0)
    assert extract_time_range("no timing") == (0.0, 0.0)


def test_extract_field_with_and_without_bullet():
    assert extract_field("**Concept:** a thing\nnext", "Concept") == "a thing"
    assert extract_field("- **concept:** lower label", "Concept") == "lower label"
    assert extract_field("nothing", "Concept") == ""


def test_extract_description_ignores_bold():
    assert extract_description("**Shot A — x**\n*the mood*") == "the mood"
    assert extract_description("**bold only**") == ""


def test_determine_shot_type_markers():
    assert determine_shot_type("RAPID CUT sequence") == "multi"
    assert determine_shot_type("rapidcut") == "multi"
    assert determine_shot_type("a ⚡ moment") == "multi"
    assert determine_shot_type("held wide") == "solo"


def test_find_shot_headings_strips_quotes():
    headings = find_shot_headings('**Shot C3 – "Drop"**\n**Shot C4 - Calm**')
    assert [(h.label, h.detail) for h in headings] == [("C3", "Drop"), ("C4", "Calm")]


def test_take_ref_prompt_prefers_cut_heading():
    text = "**Ref Image Prompt — Angle 2**\n```\nangle two\n```\n**Ref Image Prompt — Cut 1**\n```\ncut one\n```\n"
    assert find_take_ref_prompt(text, 1) == "cut one"
    assert find_take_ref_prompt(text, 2) == "angle two"
    assert find_take_ref_prompt(text, 3) == ""


def test_take_ref_prompt_loose_match_can_hit_unrelated_heading():
    text = "**Ref Image Prompt — wide 1980s look**\n```\nretro\n```\n"
    assert find_take_ref_prompt(text, 1) == "retro"
