import threading
from pathlib import Path

import pytest

from src.widgets.errors import ClientError, DuplicateID, LoadError, NotFound
from src.widgets.loader import WidgetLoader
from src.widgets.localizer import LangPacks, Localizer
from src.widgets.registry import WidgetRegistry

USERS_OPTIONS_API = "/api/__yao/table/users/component/fields.table.status.edit.props/options"


@pytest.fixture
def registry(loader, tmp_path: Path) -> WidgetRegistry:
    return WidgetRegistry(loader=loader, root=tmp_path)


def test_load_publishes_valid_and_reports_invalid(registry, tmp_path, write_widget, users_definition):
    write_widget(tmp_path, "users.json", users_definition)
    write_widget(tmp_path, "orders.json", {})
    write_widget(tmp_path, "ghost.json", {"action": {"bind": {"model": "no_such_model"}}})
    write_widget(tmp_path, "broken.json", "{")

    with pytest.raises(LoadError) as exc_info:
        registry.init()

    assert registry.list_ids() == ["orders", "users"]
    assert exc_info.value.failed_ids == ["broken", "ghost"]
    message = str(exc_info.value)
    assert "[ghost]" in message and "no_such_model" in message
    assert message.count(";") >= 1
    assert "ghost" not in registry


def test_get_and_must_get(registry, tmp_path, write_widget):
    write_widget(tmp_path, "orders.json", {})
    registry.init()

    assert registry.get("orders").id == "orders"
    assert registry.find("missing") is None
    with pytest.raises(NotFound):
        registry.get("missing")
    with pytest.raises(ClientError) as exc_info:
        registry.must_get("missing")
    assert exc_info.value.status_code == 400


def test_reload_is_idempotent(registry, tmp_path, write_widget, users_definition):
    write_widget(tmp_path, "users.json", users_definition)
    registry.init()
    first = registry.get("users")

    registry.reload()
    second = registry.get("users")

    assert second is not first
    assert second.model_dump() == first.model_dump()
    assert second.fields.table["status"].edit.props["options"]["api"] == USERS_OPTIONS_API


def test_init_runs_once(registry, tmp_path, write_widget):
    write_widget(tmp_path, "orders.json", {})
    registry.init()
    first = registry.get("orders")

    registry.init()

    assert registry.get("orders") is first


def test_failed_reload_keeps_published_entry(registry, tmp_path, write_widget, users_definition):
    write_widget(tmp_path, "users.json", users_definition)
    write_widget(tmp_path, "orders.json", {})
    registry.init()
    published = registry.get("users")

    write_widget(tmp_path, "users.json", '{"fields": ')
    write_widget(tmp_path, "orders.json", {"name": "Orders v2"})
    with pytest.raises(LoadError):
        registry.reload()

    assert registry.get("users") is published
    assert registry.get("orders").name == "Orders v2"


def test_duplicate_ids_keep_previous_entry(registry, tmp_path, write_widget):
    write_widget(tmp_path, "users.json", {"name": "Users"})
    registry.init()

    write_widget(tmp_path, "users.tab.json", {"name": "Other users"})
    with pytest.raises(LoadError) as exc_info:
        registry.reload()

    assert isinstance(exc_info.value.result.failures[0][1], DuplicateID)
    assert registry.get("users").name == "Users"


def test_duplicate_ids_publish_nothing(registry, tmp_path, write_widget):
    write_widget(tmp_path, "users.json", {})
    write_widget(tmp_path, "users.tab.json", {})

    with pytest.raises(LoadError):
        registry.init()

    assert registry.count() == 0


def test_load_from_adds_namespace(registry, tmp_path, write_widget):
    write_widget(tmp_path / "app", "orders.json", {})
    write_widget(tmp_path / "plugin", "orders.json", {})

    registry.load_from(tmp_path / "app")
    registry.load_from(tmp_path / "plugin", prefix="plugin.")

    assert registry.list_ids() == ["orders", "plugin.orders"]
    assert [d.id for d in registry.list_all()] == ["orders", "plugin.orders"]


def test_teardown(registry, tmp_path, write_widget):
    write_widget(tmp_path, "orders.json", {})
    registry.init()

    registry.teardown()

    assert registry.count() == 0
    registry.init()
    assert registry.count() == 1


def test_init_without_root(loader):
    with pytest.raises(ValueError):
        WidgetRegistry(loader=loader).init()


def test_reads_during_reload(registry, tmp_path, write_widget, users_definition):
    for i in range(20):
        write_widget(tmp_path, f"users_{i}.json", users_definition)
    registry.init()
    errors: list[Exception] = []
    stop = threading.Event()

    def read():
        while not stop.is_set():
            try:
                for widget_id in registry.list_ids():
                    d = registry.must_get(widget_id)
                    assert d.merged
                    assert d.fields.table["status"].edit.props["options"]["api"].endswith("/options")
            except Exception as e:
                errors.append(e)
                return

    readers = [threading.Thread(target=read) for _ in range(4)]
    for t in readers:
        t.start()
    for _ in range(3):
        registry.reload()
    stop.set()
    for t in readers:
        t.join()

    assert errors == []
    assert registry.count() == 20


def test_broken_language_pack_does_not_block_load(binder, validator, tmp_path, write_widget, users_definition):
    (tmp_path / "langs" / "de").mkdir(parents=True)
    (tmp_path / "langs" / "de" / "global.yml").write_text("Name: [unclosed\n", encoding="utf-8")
    tables = tmp_path / "tables"
    write_widget(tables, "users.json", users_definition)
    write_widget(tables, "orders.json", {})
    loader = WidgetLoader(
        binder=binder,
        validator=validator,
        localizer=Localizer(LangPacks(tmp_path, "de")),
    )
    registry = WidgetRegistry(loader=loader, root=tables)

    result = registry.init()

    assert result.ok
    assert registry.list_ids() == ["orders", "users"]
    assert registry.get("users").name == "Users"
