from shotplanner.project.models import Project, Shot
from shotplanner.project.params import load_default_params, resolve_params


def test_defaults_are_loaded():
    params = load_default_params()
    assert params["resolution"] == "960x544"
    assert params["seed"] == -1


def test_defaults_are_copies():
    params = load_default_params()
    params["seed"] = 99
    assert load_default_params()["seed"] == -1


def test_layers_override_in_order():
    project = Project(id="p", name="P", default_params={"seed": 5, "num_inference_steps": 12})
    shot = Shot(id="s", name="S", params={"seed": 9})
    params = resolve_params(project, shot)
    assert params["seed"] == 9
    assert params["num_inference_steps"] == 12
    assert params["resolution"] == "960x544"


def test_shot_without_params():
    project = Project(id="p", name="P")
    assert resolve_params(project, Shot(id="s", name="S")) == load_default_params()
