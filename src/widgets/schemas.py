"""Widget definition schemas — the typed form of one definition file.

A definition file declares a CRUD screen: which model it is bound to,
which processes serve each operation, how filters and columns render,
which props are fetched from the server at render time (cloud props)
and which fields are computed on read or write.

Descriptors are produced by the parser, decorated by the binder and
merger, and published read-only in a WidgetRegistry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator


class WidgetKind(str, Enum):
    """Widget families served by the engine."""

    TABLE = "table"
    FORM = "form"


# (attribute, process suffix) for every operation a widget exposes.
# Operation keys in JSON use dashes: update_where -> "update-where".
OPERATIONS: list[tuple[str, str]] = [
    ("setting", "Setting"),
    ("xgen", "Xgen"),
    ("component", "Component"),
    ("search", "Search"),
    ("get", "Get"),
    ("find", "Find"),
    ("save", "Save"),
    ("create", "Create"),
    ("insert", "Insert"),
    ("update", "Update"),
    ("update_where", "UpdateWhere"),
    ("update_in", "UpdateIn"),
    ("delete", "Delete"),
    ("delete_where", "DeleteWhere"),
    ("delete_in", "DeleteIn"),
]

# Operations accepting before:/after: hooks
HOOK_OPERATIONS = [
    "find",
    "search",
    "get",
    "save",
    "create",
    "insert",
    "update",
    "update-where",
    "update-in",
    "delete",
    "delete-where",
    "delete-in",
]


def default_process(kind: WidgetKind, suffix: str) -> str:
    """Name of the built-in process serving an operation."""
    return f"yao.{kind.value}.{suffix}"


class ProcessBinding(BaseModel):
    """Process serving one widget operation."""

    process: str = Field(default="", description="Process name, e.g. 'models.user.Paginate'")
    guard: str = Field(default="", description="Comma separated middleware guards")
    default: list[Any] = Field(
        default_factory=list,
        description="Default arguments, positional, merged with request arguments",
    )

    @model_validator(mode="before")
    @classmethod
    def _process_shorthand(cls, data: Any) -> Any:
        """Accept a bare process name."""
        if isinstance(data, str):
            return {"process": data}
        return data


class BindDSL(BaseModel):
    """Data source the widget operates on."""

    model: Optional[str] = Field(default=None, description="Model name")
    store: Optional[str] = Field(default=None, description="Key-value store name")
    table: Optional[str] = Field(default=None, description="Another table widget ID")
    option: dict[str, Any] = Field(default_factory=dict)


class ActionDSL(BaseModel):
    """Process bindings for every operation plus before/after hooks."""

    model_config = ConfigDict(populate_by_name=True)

    bind: BindDSL = Field(default_factory=BindDSL)

    setting: ProcessBinding = Field(default_factory=ProcessBinding)
    xgen: ProcessBinding = Field(default_factory=ProcessBinding)
    component: ProcessBinding = Field(default_factory=ProcessBinding)
    search: ProcessBinding = Field(default_factory=ProcessBinding)
    get: ProcessBinding = Field(default_factory=ProcessBinding)
    find: ProcessBinding = Field(default_factory=ProcessBinding)
    save: ProcessBinding = Field(default_factory=ProcessBinding)
    create: ProcessBinding = Field(default_factory=ProcessBinding)
    insert: ProcessBinding = Field(default_factory=ProcessBinding)
    update: ProcessBinding = Field(default_factory=ProcessBinding)
    update_where: ProcessBinding = Field(default_factory=ProcessBinding, alias="update-where")
    update_in: ProcessBinding = Field(default_factory=ProcessBinding, alias="update-in")
    delete: ProcessBinding = Field(default_factory=ProcessBinding)
    delete_where: ProcessBinding = Field(default_factory=ProcessBinding, alias="delete-where")
    delete_in: ProcessBinding = Field(default_factory=ProcessBinding, alias="delete-in")

    hooks: dict[str, str] = Field(
        default_factory=dict,
        description="'before:<op>' / 'after:<op>' -> process name",
    )

    @model_validator(mode="before")
    @classmethod
    def _collect_hooks(cls, data: Any) -> Any:
        """Move top-level 'before:*' and 'after:*' keys into hooks."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        hooks = dict(data.pop("hooks", None) or {})
        for key in list(data):
            if key.startswith(("before:", "after:")):
                hooks[key] = data.pop(key)
        data["hooks"] = hooks
        return data

    def set_default_process(self, kind: WidgetKind) -> None:
        """Bind every operation without an explicit process to the built-in one."""
        for attr, suffix in OPERATIONS:
            binding = getattr(self, attr)
            if not binding.process:
                binding.process = default_process(kind, suffix)

    def bindings(self) -> Iterator[tuple[str, ProcessBinding]]:
        """Yield (operation key, binding) in declaration order."""
        for attr, _ in OPERATIONS:
            yield attr.replace("_", "-"), getattr(self, attr)


class ComponentDSL(BaseModel):
    """A render (view) or edit widget attached to a field."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="", description="Component kind, e.g. 'Input', 'Select', 'Tag'")
    bind: Optional[str] = None
    props: dict[str, Any] = Field(default_factory=dict)


class ComputeField(BaseModel):
    """Derivation applied to a field value on write (in) or read (out)."""

    process: str
    args: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _process_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"process": data}
        return data


class FieldDSL(BaseModel):
    """Attributes shared by filters and columns."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    label: str = ""
    bind: str = Field(default="", description="Model column or query expression")
    data_type: Optional[str] = Field(default=None, alias="type")
    source: Optional[str] = Field(default=None, description="Data source (model) providing values")
    rules: list[Any] = Field(default_factory=list, description="Validation rules")
    edit: Optional[ComponentDSL] = None
    compute_in: Optional[ComputeField] = Field(default=None, alias="in")
    compute_out: Optional[ComputeField] = Field(default=None, alias="out")

    def components(self) -> Iterator[tuple[str, ComponentDSL]]:
        """Yield (slot, component) for each declared component."""
        if self.edit is not None:
            yield "edit", self.edit


class FilterDSL(FieldDSL):
    """A field usable as a search predicate."""


class ColumnDSL(FieldDSL):
    """A field rendered in a table or edited in a form."""

    view: Optional[ComponentDSL] = None

    def components(self) -> Iterator[tuple[str, ComponentDSL]]:
        if self.view is not None:
            yield "view", self.view
        yield from super().components()


class FieldsDSL(BaseModel):
    """Filter and table field collections, keyed by field name."""

    filter: dict[str, FilterDSL] = Field(default_factory=dict)
    table: dict[str, ColumnDSL] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _name_fields(self) -> "FieldsDSL":
        """Field names come from their mapping keys."""
        for name, f in self.filter.items():
            f.name = name
        for name, c in self.table.items():
            c.name = name
        return self


class CloudPropsDSL(BaseModel):
    """A component prop resolved server-side at render time."""

    xpath: str = Field(..., description="Dotted address of a props mapping, e.g. 'fields.table.status.edit.props'")
    name: str = Field(..., description="Prop name inside the addressed mapping")
    process: str = Field(..., description="Process answering the remote call")
    query: dict[str, Any] = Field(default_factory=dict, description="Default query parameters")
    type: str = ""


class ComputesDSL(BaseModel):
    """Compute overlays keyed by field name."""

    model_config = ConfigDict(populate_by_name=True)

    computes_in: dict[str, ComputeField] = Field(default_factory=dict, alias="in")
    computes_out: dict[str, ComputeField] = Field(default_factory=dict, alias="out")


class InstanceDSL(BaseModel):
    """A field placed in a layout section."""

    model_config = ConfigDict(extra="allow")

    name: str
    width: Optional[int] = None


class SectionLayoutDSL(BaseModel):
    """One layout section (filter bar, table, form)."""

    model_config = ConfigDict(extra="allow")

    columns: list[InstanceDSL] = Field(default_factory=list)


class LayoutDSL(BaseModel):
    """Presentation layout. Unknown keys pass through to the client."""

    model_config = ConfigDict(extra="allow")

    primary: str = "id"
    header: dict[str, Any] = Field(default_factory=dict)
    filter: Optional[SectionLayoutDSL] = None
    table: Optional[SectionLayoutDSL] = None
    form: Optional[SectionLayoutDSL] = None

    def sections(self) -> Iterator[tuple[str, SectionLayoutDSL]]:
        for key in ("filter", "table", "form"):
            section = getattr(self, key)
            if section is not None:
                yield key, section


@dataclass
class Bindings:
    """Handles resolved by the binder.

    Handles belong to the data-access and process layers; copies of a
    descriptor share them.
    """

    model: Any = None
    store: Any = None
    sources: dict[str, Any] = field(default_factory=dict)
    processes: dict[str, Any] = field(default_factory=dict)
    schema_columns: Optional[set[str]] = None

    def __deepcopy__(self, memo: dict) -> "Bindings":
        return self


class WidgetDescriptor(BaseModel):
    """Compiled configuration of one widget."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    kind: WidgetKind = WidgetKind.TABLE
    name: str = ""
    action: Optional[ActionDSL] = None
    layout: Optional[LayoutDSL] = None
    fields: Optional[FieldsDSL] = None
    cprops: list[CloudPropsDSL] = Field(default_factory=list)
    computes: ComputesDSL = Field(default_factory=ComputesDSL)
    config: dict[str, Any] = Field(default_factory=dict)

    _bindings: Optional[Bindings] = PrivateAttr(default=None)
    _merged: bool = PrivateAttr(default=False)

    @property
    def bindings(self) -> Optional[Bindings]:
        return self._bindings

    @property
    def merged(self) -> bool:
        return self._merged

    def xgen(self) -> dict[str, Any]:
        """Client-facing setting: layout sections plus rendered fields."""
        setting = self.layout.model_dump(by_alias=True, exclude_none=True) if self.layout else {}
        setting["name"] = self.name
        setting["fields"] = render_fields(self.fields) if self.fields else {}
        if self.config:
            setting["config"] = self.config
        return setting


def render_fields(fields: FieldsDSL) -> dict[str, Any]:
    """Fields as they appear in the client setting tree."""
    return fields.model_dump(by_alias=True, exclude_none=True)
