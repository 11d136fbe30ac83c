"""Decode definition file bytes into a WidgetDescriptor."""

import json
import logging

import pydantic

from src.widgets.errors import MalformedDefinition
from src.widgets.schemas import (
    ActionDSL,
    FieldsDSL,
    LayoutDSL,
    WidgetDescriptor,
    WidgetKind,
)

logger = logging.getLogger(__name__)


def parse_definition(
    data: bytes,
    widget_id: str,
    kind: WidgetKind = WidgetKind.TABLE,
) -> WidgetDescriptor:
    """Parse one definition file.

    Sections left out of the file are filled with empty structures and
    every operation without a process gets the built-in one, so later
    steps can rely on ``action``, ``layout`` and ``fields`` being set.

    Raises:
        MalformedDefinition: the bytes are not a JSON object matching the schema.
    """
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedDefinition(widget_id, str(e)) from e

    if not isinstance(raw, dict):
        raise MalformedDefinition(
            widget_id, f"top level must be an object, got {type(raw).__name__}"
        )

    # ID and kind come from the loader, never from the file
    raw.pop("id", None)
    raw.pop("kind", None)

    try:
        descriptor = WidgetDescriptor.model_validate({**raw, "id": widget_id, "kind": kind})
    except pydantic.ValidationError as e:
        raise MalformedDefinition(widget_id, str(e)) from e

    if descriptor.action is None:
        descriptor.action = ActionDSL()
    descriptor.action.set_default_process(kind)

    if descriptor.layout is None:
        descriptor.layout = LayoutDSL()

    if descriptor.fields is None:
        descriptor.fields = FieldsDSL()

    logger.debug(f"Parsed widget definition: {widget_id}")
    return descriptor
