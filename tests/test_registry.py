import logging

import pytest

from resource_view.views.builder import ViewDefinition
from resource_view.views.errors import ViewRegistrationError
from resource_view.views.registry import (
    ViewRegistry,
    get_view_registry,
    register_view,
    reset_view_registry,
)


def _view(path: str = "/owners", **kwargs) -> ViewDefinition:
    return ViewDefinition(path=path, **kwargs)


def test_register_and_get_case_insensitive():
    registry = ViewRegistry()
    view = _view()
    registry.register("Owner", view)

    assert registry.get("owner") is view
    assert registry.get("OWNER") is view
    assert "owner" in registry
    assert "Owner" in registry
    assert registry.list_keys() == ["owner"]
    assert registry.count() == 1


def test_unregister():
    registry = ViewRegistry()
    registry.register("owner", _view())
    assert registry.unregister("Owner") is True
    assert registry.unregister("owner") is False
    assert registry.get("owner") is None


def test_register_rejects_bad_input():
    registry = ViewRegistry()
    with pytest.raises(ViewRegistrationError):
        registry.register("", _view())
    with pytest.raises(ViewRegistrationError):
        registry.register("owner", {"path": "/owners"})


def test_frozen_registry_is_read_only():
    registry = ViewRegistry()
    registry.register("owner", _view())
    registry.freeze()

    assert registry.frozen
    with pytest.raises(ViewRegistrationError):
        registry.register("widget", _view("/widgets"))
    with pytest.raises(ViewRegistrationError):
        registry.unregister("owner")
    with pytest.raises(ViewRegistrationError):
        registry.reload()
    assert registry.get("owner") is not None


def test_list_summaries():
    registry = ViewRegistry()
    registry.register(
        "widget",
        _view(
            "/widgets",
            keys=["$id", "name"],
            type_tag="Widget",
            compute_keys={"label": lambda body, req, res: "x"},
        ),
    )
    registry.register("owner", _view())

    summaries = registry.list_summaries()
    assert [s.name for s in summaries] == ["owner", "widget"]
    widget = summaries[1]
    assert widget.path == "/widgets"
    assert widget.type_tag == "Widget"
    assert widget.accepted_keys == ["$id", "name", "label"]
    assert widget.computed_keys == ["label"]


def test_load_yaml_definitions(tmp_path, caplog):
    (tmp_path / "owner.yaml").write_text(
        "name: Owner\n"
        "path: /owners\n"
        "keys: ['$id', '$type', 'name']\n"
        "type_tag: Owner\n"
        "secret_keys: [email]\n"
    )
    (tmp_path / "broken.yaml").write_text("keys: [unterminated\n")

    registry = ViewRegistry(tmp_path)
    with caplog.at_level(logging.ERROR):
        registry.load()

    owner = registry.get("owner")
    assert owner is not None
    assert owner.path == "/owners"
    assert owner.type_tag == "Owner"
    assert owner.secret_keys == ["email"]
    assert registry.count() == 1
    assert any("broken.yaml" in r.getMessage() for r in caplog.records)


def test_missing_definitions_dir_warns(tmp_path, caplog):
    registry = ViewRegistry(tmp_path / "nope")
    with caplog.at_level(logging.WARNING):
        assert registry.count() == 0
    assert any("not found" in r.getMessage() for r in caplog.records)


def test_reload_drops_code_views(tmp_path):
    registry = ViewRegistry(tmp_path)
    registry.register("owner", _view())
    registry.reload()
    assert registry.count() == 0


def test_global_registry_singleton():
    assert get_view_registry() is get_view_registry()
    view = _view()
    register_view("owner", view)
    assert get_view_registry().get("owner") is view

    reset_view_registry()
    assert get_view_registry().get("owner") is None
