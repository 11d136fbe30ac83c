"""Resolve the names a descriptor references against live catalogs."""

import logging
from typing import Collection, Optional

from src.widgets.catalog import Catalog, ModelHandle, Resolver
from src.widgets.errors import UnresolvedReference
from src.widgets.merger import collect_cloud_props
from src.widgets.schemas import Bindings, WidgetDescriptor

logger = logging.getLogger(__name__)


class Binder:
    """Binds descriptors to models, stores, processes and components.

    Models, stores and processes default to empty catalogs, so any
    reference to them fails until a catalog is supplied. Component
    types are only checked when a component catalog is given.
    """

    def __init__(
        self,
        models: Optional[Resolver] = None,
        stores: Optional[Resolver] = None,
        processes: Optional[Resolver] = None,
        components: Optional[Resolver] = None,
    ):
        self.models = models if models is not None else Catalog()
        self.stores = stores if stores is not None else Catalog()
        self.processes = processes if processes is not None else Catalog()
        self.components = components

    def bind(
        self,
        descriptor: WidgetDescriptor,
        known_widgets: Collection[str] = (),
    ) -> WidgetDescriptor:
        """Resolve every external reference and record the handles.

        Args:
            descriptor: Freshly parsed descriptor, not yet published.
            known_widgets: Widget IDs a ``bind.table`` may point at.

        Raises:
            UnresolvedReference: on the first name that does not resolve.
        """
        widget_id = descriptor.id
        bindings = Bindings()
        bind = descriptor.action.bind

        if bind.model:
            bindings.model = self._require(self.models, bind.model, widget_id, "action.bind.model")
            if isinstance(bindings.model, ModelHandle):
                bindings.schema_columns = {c.name for c in bindings.model.describe_schema()}

        if bind.store:
            bindings.store = self._require(self.stores, bind.store, widget_id, "action.bind.store")

        if bind.table and bind.table not in known_widgets:
            raise UnresolvedReference(widget_id, bind.table, "action.bind.table")

        for collection, items in (
            ("filter", descriptor.fields.filter),
            ("table", descriptor.fields.table),
        ):
            for name, f in items.items():
                if f.source and f.source not in bindings.sources:
                    bindings.sources[f.source] = self._require(
                        self.models, f.source, widget_id, f"fields.{collection}.{name}.source"
                    )
                if self.components is None:
                    continue
                for slot, component in f.components():
                    if component.type:
                        self._require(
                            self.components,
                            component.type,
                            widget_id,
                            f"fields.{collection}.{name}.{slot}.type",
                        )

        for cprop in collect_cloud_props(descriptor):
            bindings.processes[cprop.process] = self._require(
                self.processes, cprop.process, widget_id, f"cloud prop {cprop.xpath}.{cprop.name}"
            )

        descriptor._bindings = bindings
        logger.debug(f"Bound {widget_id}: model={bind.model} store={bind.store} table={bind.table}")
        return descriptor

    @staticmethod
    def _require(resolver: Resolver, name: str, widget_id: str, where: str):
        handle = resolver.resolve(name)
        if handle is None:
            raise UnresolvedReference(widget_id, name, where)
        return handle
