"""
Widget definition compiler

Loads declarative CRUD screen definitions (tables, forms) from JSON
files, binds them to models, stores and processes, merges compute and
cloud prop overlays, validates and localizes them, and serves the
compiled descriptors from a WidgetRegistry.
"""

from .catalog import Catalog, ColumnSchema, FunctionProcess, StaticModel
from .errors import (
    ClientError,
    DuplicateID,
    LoadError,
    MalformedDefinition,
    NotFound,
    UnresolvedReference,
    UnresolvedXPath,
    ValidationError,
    WidgetError,
)
from .binder import Binder
from .loader import LoadResult, WidgetLoader
from .localizer import LangPacks, LocaleOverlay, Localizer
from .merger import merge_overlays
from .parser import parse_definition
from .paths import widget_id
from .registry import WidgetRegistry
from .schemas import WidgetDescriptor, WidgetKind
from .validator import Validator

__all__ = [
    "Binder",
    "Catalog",
    "ClientError",
    "ColumnSchema",
    "DuplicateID",
    "FunctionProcess",
    "LangPacks",
    "LoadError",
    "LoadResult",
    "LocaleOverlay",
    "Localizer",
    "MalformedDefinition",
    "NotFound",
    "StaticModel",
    "UnresolvedReference",
    "UnresolvedXPath",
    "ValidationError",
    "Validator",
    "WidgetDescriptor",
    "WidgetError",
    "WidgetKind",
    "WidgetLoader",
    "WidgetRegistry",
    "merge_overlays",
    "parse_definition",
    "widget_id",
]
