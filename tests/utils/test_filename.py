from shotplanner.utils.filename import build_shot_stem, sanitize_filename


def test_build_shot_stem_solo():
    assert build_shot_stem("Intro", 0, "Wide Shot") == "intro_01_wide_shot"


def test_build_shot_stem_with_take():
    assert build_shot_stem("Intro", 0, "Wide Shot", "Take 2") == "intro_01_wide_shot_take_2"


def test_build_shot_stem_index_disambiguates_same_names():
    first = build_shot_stem("Verse 1", 2, "A1 — Rules First")
    second = build_shot_stem("Verse 1", 3, "A1 — Rules First")
    assert first == "verse_1_03_a1_rules_first"
    assert first != second


def test_sanitize_filename_collapses_symbols():
    assert sanitize_filename('  "Rules"  First!! ') == "rules_first"
    assert sanitize_filename("CHORUS — (x2)") == "chorus_x2"


def test_sanitize_filename_degenerate_inputs():
    assert sanitize_filename("") == ""
    assert sanitize_filename("★★★") == ""
    assert sanitize_filename("Café") == "caf"
