import json
from pathlib import Path
from typing import Any, Callable

import pytest

from src.widgets.binder import Binder
from src.widgets.catalog import Catalog, FunctionProcess, StaticModel
from src.widgets.loader import WidgetLoader
from src.widgets.validator import Validator

# A fully featured table definition: explicit actions and hooks, layout,
# filters and columns, an explicit and an inline cloud prop, a compute.
USERS = {
    "name": "::Users",
    "action": {
        "bind": {"model": "user"},
        "search": {"process": "models.user.Paginate", "guard": "bearer-jwt"},
        "before:search": "scripts.user.BeforeSearch",
    },
    "layout": {
        "primary": "id",
        "filter": {"columns": [{"name": "keywords"}]},
        "table": {"columns": [{"name": "name", "width": 200}, {"name": "status"}]},
    },
    "fields": {
        "filter": {
            "keywords": {
                "label": "Keywords",
                "bind": "where.name.match",
                "edit": {"type": "Input", "props": {"placeholder": "Search"}},
            }
        },
        "table": {
            "name": {
                "label": "Name",
                "bind": "name",
                "view": {"type": "Text", "props": {}},
                "edit": {"type": "Input", "props": {}},
            },
            "status": {
                "label": "Status",
                "bind": "status",
                "view": {
                    "type": "Tag",
                    "props": {"$options": {"process": "models.status.Get", "query": {"select": ["id", "name"]}}},
                },
                "edit": {"type": "Select", "props": {"options": []}},
            },
        },
    },
    "cprops": [
        {
            "xpath": "fields.table.status.edit.props",
            "name": "options",
            "process": "models.status.Get",
            "query": {"select": ["id", "name"]},
        }
    ],
    "computes": {"out": {"name": "scripts.user.Upper"}},
}


def _noop(*args: Any) -> None:
    return None


@pytest.fixture
def models() -> Catalog:
    return Catalog(
        {
            "user": StaticModel.of("user", ["id", "name", "status"]),
            "order": StaticModel.of("order", ["id", "amount", "user_id"]),
            "status": StaticModel.of("status", ["id", "name"]),
        }
    )


@pytest.fixture
def processes() -> Catalog:
    names = [
        "models.user.Paginate",
        "models.status.Get",
        "scripts.user.BeforeSearch",
        "scripts.user.Upper",
    ]
    return Catalog({n: FunctionProcess(n, _noop) for n in names})


@pytest.fixture
def binder(models: Catalog, processes: Catalog) -> Binder:
    return Binder(models=models, processes=processes)


@pytest.fixture
def validator(processes: Catalog) -> Validator:
    return Validator(processes=processes)


@pytest.fixture
def loader(binder: Binder, validator: Validator) -> WidgetLoader:
    return WidgetLoader(binder=binder, validator=validator, workers=2)


@pytest.fixture
def write_widget() -> Callable[[Path, str, Any], Path]:
    """Write a definition (dict or raw text) to root/rel."""

    def _write(root: Path, rel: str, data: Any) -> Path:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def users_definition() -> dict:
    return json.loads(json.dumps(USERS))
