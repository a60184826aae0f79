from shotplanner.project.migrate import migrate_project_dict, needs_migration
from shotplanner.project.models import SCHEMA_VERSION, Project


def _legacy():
    return {
        "id": "old",
        "name": "Old Song",
        "sections": [
            {
                "id": "s1",
                "name": "INTRO",
                "shots": [
                    {"id": "a", "name": "A1", "type": "held"},
                    {"id": "b", "name": "A2", "type": "visual_only"},
                    {
                        "id": "c",
                        "name": "A3",
                        "type": "rapid_cut",
                        "cuts": [{"id": "t1", "label": "Cut 1"}, {"id": "t2", "label": "cut 2"}],
                    },
                ],
            }
        ],
    }


def test_legacy_document_needs_migration():
    assert needs_migration(_legacy())


def test_migration_renames_cuts_and_types():
    data = _legacy()
    migrated = migrate_project_dict(data)
    shots = migrated["sections"][0]["shots"]

    assert [s["type"] for s in shots] == ["solo", "solo", "multi"]
    assert "cuts" not in shots[2]
    assert [t["label"] for t in shots[2]["takes"]] == ["Take 1", "Take 2"]
    assert migrated["schemaVersion"] == SCHEMA_VERSION
    # the input is untouched
    assert "cuts" in data["sections"][0]["shots"][2]
    assert "schemaVersion" not in data


def test_existing_takes_win_over_cuts():
    data = _legacy()
    shot = data["sections"][0]["shots"][2]
    shot["takes"] = [{"id": "keep", "label": "Take 1"}]
    migrated = migrate_project_dict(data)
    migrated_shot = migrated["sections"][0]["shots"][2]
    assert [t["id"] for t in migrated_shot["takes"]] == ["keep"]
    assert "cuts" not in migrated_shot


def test_current_document_is_unchanged():
    data = Project(id="p", name="New").to_dict()
    assert not needs_migration(data)
    assert migrate_project_dict(data) == data


def test_versioned_document_with_legacy_fields_is_still_migrated():
    data = _legacy()
    data["schemaVersion"] = SCHEMA_VERSION
    assert needs_migration(data)
    assert migrate_project_dict(data)["sections"][0]["shots"][0]["type"] == "solo"


def test_custom_take_labels_are_kept():
    data = _legacy()
    data["sections"][0]["shots"][2]["cuts"][0]["label"] = "Cutaway"
    migrated = migrate_project_dict(data)
    assert migrated["sections"][0]["shots"][2]["takes"][0]["label"] == "Cutaway"


def test_migrated_document_loads():
    project = Project.from_dict(migrate_project_dict(_legacy()))
    assert project.sections[0].shots[2].has_takes
