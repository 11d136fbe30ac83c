"""Structural checks on a bound, merged descriptor."""

import logging
import re
from typing import Optional

from src.widgets.catalog import Resolver
from src.widgets.errors import ValidationError
from src.widgets.schemas import (
    HOOK_OPERATIONS,
    OPERATIONS,
    WidgetDescriptor,
    default_process,
)

logger = logging.getLogger(__name__)

_SIMPLE_BIND = re.compile(r"^\w+$")

# Layout section -> field collection its columns refer to
_SECTION_FIELDS = {"filter": "filter", "table": "table", "form": "table"}


class Validator:
    """Collects every structural violation of a descriptor.

    When a process catalog is given, explicitly bound processes and hook
    processes must resolve in it; built-in processes always do.
    """

    def __init__(self, processes: Optional[Resolver] = None):
        self.processes = processes

    def validate(self, descriptor: WidgetDescriptor) -> None:
        """Raise ValidationError listing all violations, if any."""
        violations: list[str] = []

        if not descriptor.id:
            violations.append("widget id is empty")

        violations.extend(self._check_actions(descriptor))
        violations.extend(self._check_layout(descriptor))
        violations.extend(self._check_computes(descriptor))
        violations.extend(self._check_binds(descriptor))

        if violations:
            logger.debug(f"{descriptor.id} failed validation with {len(violations)} violations")
            raise ValidationError(descriptor.id, violations)

    def _resolvable(self, process: str) -> bool:
        return self.processes is None or self.processes.resolve(process) is not None

    def _check_actions(self, descriptor: WidgetDescriptor) -> list[str]:
        violations = []
        suffixes = dict(OPERATIONS)
        for op, binding in descriptor.action.bindings():
            if not binding.process:
                violations.append(f"action '{op}' has no process")
                continue
            builtin = default_process(descriptor.kind, suffixes[op.replace("-", "_")])
            if binding.process != builtin and not self._resolvable(binding.process):
                violations.append(f"action '{op}' process '{binding.process}' does not exist")

        for hook, process in sorted(descriptor.action.hooks.items()):
            _, _, op = hook.partition(":")
            if op not in HOOK_OPERATIONS:
                violations.append(f"hook '{hook}' names an unknown operation")
            if not process:
                violations.append(f"hook '{hook}' has no process")
            elif not self._resolvable(process):
                violations.append(f"hook '{hook}' process '{process}' does not exist")
        return violations

    def _check_layout(self, descriptor: WidgetDescriptor) -> list[str]:
        violations = []
        for key, section in descriptor.layout.sections():
            collection = _SECTION_FIELDS[key]
            names = getattr(descriptor.fields, collection)
            for instance in section.columns:
                if instance.name not in names:
                    violations.append(
                        f"layout.{key} column '{instance.name}' is not in fields.{collection}"
                    )
        return violations

    def _check_computes(self, descriptor: WidgetDescriptor) -> list[str]:
        violations = []
        fields = descriptor.fields
        for direction, computes in (
            ("in", descriptor.computes.computes_in),
            ("out", descriptor.computes.computes_out),
        ):
            for name in computes:
                if name not in fields.table and name not in fields.filter:
                    violations.append(f"computes.{direction} field '{name}' does not exist")
        return violations

    def _check_binds(self, descriptor: WidgetDescriptor) -> list[str]:
        bindings = descriptor.bindings
        if bindings is None or not bindings.schema_columns:
            return []
        model = descriptor.action.bind.model
        violations = []
        for name, column in descriptor.fields.table.items():
            if column.bind and _SIMPLE_BIND.match(column.bind) and column.bind not in bindings.schema_columns:
                violations.append(
                    f"fields.table.{name} binds '{column.bind}' which is not a column of model '{model}'"
                )
        return violations
