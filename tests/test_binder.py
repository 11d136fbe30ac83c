import json

import pytest

from src.widgets.binder import Binder
from src.widgets.catalog import Catalog, StaticModel
from src.widgets.errors import UnresolvedReference
from src.widgets.parser import parse_definition


def _parse(definition: dict, widget_id: str = "orders"):
    return parse_definition(json.dumps(definition).encode(), widget_id)


def test_unknown_model_names_reference_and_widget(binder):
    d = _parse({"action": {"bind": {"model": "no_such_model"}}})

    with pytest.raises(UnresolvedReference) as exc_info:
        binder.bind(d)

    err = exc_info.value
    assert err.reference == "no_such_model"
    assert err.widget_id == "orders"
    assert err.where == "action.bind.model"
    assert "no_such_model" in str(err) and "orders" in str(err)


def test_bind_records_model_handle_and_schema(binder, models, users_definition):
    d = binder.bind(_parse(users_definition, "users"))

    assert d.bindings.model is models.resolve("user")
    assert d.bindings.schema_columns == {"id", "name", "status"}
    assert "models.status.Get" in d.bindings.processes


def test_bind_does_not_touch_catalogs(binder, models, processes, users_definition):
    sizes = (len(models), len(processes))

    binder.bind(_parse(users_definition, "users"))

    assert (len(models), len(processes)) == sizes


def test_unknown_store():
    binder = Binder(stores=Catalog({"cache": object()}))

    binder.bind(_parse({"action": {"bind": {"store": "cache"}}}))
    with pytest.raises(UnresolvedReference, match="action.bind.store"):
        binder.bind(_parse({"action": {"bind": {"store": "redis"}}}))


def test_bind_table_must_be_known(binder):
    d = _parse({"action": {"bind": {"table": "admin.users"}}})

    binder.bind(d, known_widgets={"admin.users"})
    with pytest.raises(UnresolvedReference) as exc_info:
        binder.bind(d, known_widgets={"users"})
    assert exc_info.value.reference == "admin.users"


def test_unknown_field_source(binder):
    d = _parse({"fields": {"filter": {"city": {"label": "City", "source": "city"}}}})

    with pytest.raises(UnresolvedReference) as exc_info:
        binder.bind(d)
    assert exc_info.value.where == "fields.filter.city.source"


def test_unknown_inline_cloud_prop_process(binder, users_definition):
    users_definition["fields"]["table"]["status"]["view"]["props"]["$options"]["process"] = "models.nope.Get"

    with pytest.raises(UnresolvedReference) as exc_info:
        binder.bind(_parse(users_definition, "users"))
    assert exc_info.value.reference == "models.nope.Get"


def test_component_types_checked_only_with_catalog(models, processes, users_definition):
    Binder(models=models, processes=processes).bind(_parse(users_definition, "users"))

    components = Catalog({k: k for k in ("Input", "Text", "Tag")})
    binder = Binder(models=models, processes=processes, components=components)
    with pytest.raises(UnresolvedReference) as exc_info:
        binder.bind(_parse(users_definition, "users"))
    assert exc_info.value.reference == "Select"
    assert exc_info.value.where == "fields.table.status.edit.type"


def test_models_without_schema_are_bound():
    binder = Binder(models=Catalog({"legacy": object()}))

    d = binder.bind(_parse({"action": {"bind": {"model": "legacy"}}}))

    assert d.bindings.schema_columns is None


def test_static_model_schema():
    model = StaticModel.of("user", ["id", "name"])

    assert [c.name for c in model.describe_schema()] == ["id", "name"]
