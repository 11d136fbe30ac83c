"""Fold compute overlays and cloud props into a descriptor's setting.

Compute overlays decorate existing fields with ``in``/``out``
derivations. Cloud props turn a static component prop into a pointer
to a server-side process: the prop is replaced with the API path the
client calls at render time plus its default query parameters.

Compute merge runs first so cloud props may address compute slots.
"""

import copy
import logging
from typing import Any, Iterator

import pydantic

from src.widgets import xpath
from src.widgets.errors import MalformedDefinition, UnresolvedXPath
from src.widgets.schemas import (
    CloudPropsDSL,
    FieldsDSL,
    LayoutDSL,
    WidgetDescriptor,
    WidgetKind,
)

logger = logging.getLogger(__name__)

# Component prop keys starting with this marker declare a cloud prop
CLOUD_PROP_MARKER = "$"


def component_api(namespace: str, kind: WidgetKind, widget_id: str, path: str, name: str) -> str:
    """API path answering a cloud prop."""
    return f"/api/{namespace}/{kind.value}/{widget_id}/component/{path}/{name}"


def iter_inline_cloud_props(fields: FieldsDSL) -> Iterator[tuple[str, str, Any]]:
    """Yield (xpath, name, declaration) for every '$'-prefixed component prop."""
    for collection, items in (("filter", fields.filter), ("table", fields.table)):
        for field_name, f in items.items():
            for slot, component in f.components():
                for key, value in component.props.items():
                    if key.startswith(CLOUD_PROP_MARKER):
                        path = f"fields.{collection}.{field_name}.{slot}.props"
                        yield path, key[len(CLOUD_PROP_MARKER):], value


def _inline_cloud_prop(widget_id: str, path: str, name: str, value: Any) -> CloudPropsDSL:
    if isinstance(value, str):
        value = {"process": value}
    if not isinstance(value, dict):
        raise MalformedDefinition(
            widget_id, f"cloud prop {path}.{CLOUD_PROP_MARKER}{name} must be an object or a process name"
        )
    try:
        return CloudPropsDSL.model_validate({**value, "xpath": path, "name": name})
    except pydantic.ValidationError as e:
        raise MalformedDefinition(widget_id, str(e)) from e


def collect_cloud_props(descriptor: WidgetDescriptor) -> list[CloudPropsDSL]:
    """Explicit cloud props followed by inline ones.

    An explicit entry wins over an inline one with the same (xpath, name).
    """
    collected = list(descriptor.cprops)
    seen = {(c.xpath, c.name) for c in collected}
    if descriptor.fields is None:
        return collected
    for path, name, value in iter_inline_cloud_props(descriptor.fields):
        if (path, name) in seen:
            continue
        collected.append(_inline_cloud_prop(descriptor.id, path, name, value))
        seen.add((path, name))
    return collected


def _strip_inline_cloud_props(fields: FieldsDSL) -> None:
    for items in (fields.filter, fields.table):
        for f in items.values():
            for _, component in f.components():
                component.props = {
                    k: v for k, v in component.props.items()
                    if not k.startswith(CLOUD_PROP_MARKER)
                }


def merge_computes(descriptor: WidgetDescriptor) -> None:
    """Attach compute overlays to the fields they name, in place.

    Names matching no field are left for the validator to report.
    """
    computes_in = descriptor.computes.computes_in
    computes_out = descriptor.computes.computes_out
    for items in (descriptor.fields.table, descriptor.fields.filter):
        for name, f in items.items():
            if name in computes_in:
                f.compute_in = computes_in[name].model_copy(deep=True)
            if name in computes_out:
                f.compute_out = computes_out[name].model_copy(deep=True)


def merge_cloud_props(descriptor: WidgetDescriptor, namespace: str) -> None:
    """Replace every cloud prop target with its remote descriptor, in place.

    Xpaths address the client setting as ``xgen()`` shapes it: layout
    keys at the top level, next to ``fields`` and ``config``.

    Raises:
        UnresolvedXPath: an xpath does not address an existing mapping.
    """
    if not descriptor.cprops:
        return
    tree = descriptor.layout.model_dump(by_alias=True) if descriptor.layout else {}
    tree["fields"] = descriptor.fields.model_dump(by_alias=True)
    tree["config"] = copy.deepcopy(descriptor.config)
    for cprop in descriptor.cprops:
        remote = {
            "api": component_api(namespace, descriptor.kind, descriptor.id, cprop.xpath, cprop.name),
            "params": copy.deepcopy(cprop.query),
        }
        try:
            xpath.replace(tree, cprop.xpath, cprop.name, remote)
        except xpath.XPathError as e:
            raise UnresolvedXPath(descriptor.id, cprop.xpath, e.segment) from e
    descriptor.config = tree.pop("config")
    try:
        descriptor.fields = FieldsDSL.model_validate(tree.pop("fields"))
    except pydantic.ValidationError as e:
        raise MalformedDefinition(descriptor.id, f"cloud props produce invalid fields: {e}") from e
    if descriptor.layout is None:
        return
    try:
        descriptor.layout = LayoutDSL.model_validate(tree)
    except pydantic.ValidationError as e:
        raise MalformedDefinition(descriptor.id, f"cloud props produce invalid layout: {e}") from e


def merge_overlays(descriptor: WidgetDescriptor, namespace: str = "__yao") -> WidgetDescriptor:
    """Return a merged copy of descriptor.

    The input is never modified. A descriptor that has already been
    merged is returned as is.
    """
    if descriptor.merged:
        return descriptor

    merged = descriptor.model_copy(deep=True)
    merge_computes(merged)
    merged.cprops = collect_cloud_props(merged)
    _strip_inline_cloud_props(merged.fields)
    merge_cloud_props(merged, namespace)
    merged._merged = True

    logger.debug(
        f"Merged overlays for {merged.id}: "
        f"{len(merged.computes.computes_in) + len(merged.computes.computes_out)} computes, "
        f"{len(merged.cprops)} cloud props"
    )
    return merged
