"""Errors raised while compiling and serving widget definitions."""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.widgets.loader import LoadResult


class WidgetError(Exception):
    """Base class for widget compiler errors."""

    def __init__(self, widget_id: str, message: str):
        self.widget_id = widget_id
        self.message = message
        super().__init__(f"[{widget_id}] {message}")


class MalformedDefinition(WidgetError):
    """The definition file could not be decoded into a descriptor."""

    def __init__(self, widget_id: str, reason: str):
        self.reason = reason
        super().__init__(widget_id, f"malformed definition: {reason}")


class UnresolvedReference(WidgetError):
    """A named data source, widget, process or component does not exist."""

    def __init__(self, widget_id: str, reference: str, where: str):
        self.reference = reference
        self.where = where
        super().__init__(widget_id, f"{where} references '{reference}' which does not exist")


class UnresolvedXPath(WidgetError):
    """A cloud property addresses a location missing from the setting tree."""

    def __init__(self, widget_id: str, xpath: str, segment: str):
        self.xpath = xpath
        self.segment = segment
        super().__init__(widget_id, f"xpath '{xpath}' is unresolvable at '{segment}'")


class ValidationError(WidgetError):
    """One or more structural problems found in a compiled descriptor."""

    def __init__(self, widget_id: str, violations: list[str]):
        self.violations = violations
        super().__init__(widget_id, "; ".join(violations))


class DuplicateID(WidgetError):
    """More than one definition file maps to the same widget ID."""

    def __init__(self, widget_id: str, paths: list[Path]):
        self.paths = paths
        files = ", ".join(str(p) for p in paths)
        super().__init__(widget_id, f"duplicate widget id claimed by {files}")


class NotFound(WidgetError):
    """No widget is published under the requested ID."""

    def __init__(self, widget_id: str):
        super().__init__(widget_id, f"{widget_id} does not exist")


class ClientError(WidgetError):
    """A caller-side mistake surfaced to HTTP clients."""

    status_code = 400

    def __init__(self, widget_id: str, message: str, status_code: Optional[int] = None):
        if status_code is not None:
            self.status_code = status_code
        super().__init__(widget_id, message)


class LoadError(Exception):
    """Aggregate of every per-file failure in one load pass."""

    def __init__(self, result: "LoadResult"):
        self.result = result
        super().__init__(";".join(str(e) for _, e in result.failures))

    @property
    def failed_ids(self) -> list[str]:
        return [widget_id for widget_id, _ in self.result.failures]
