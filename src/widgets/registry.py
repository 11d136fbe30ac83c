"""Widget registry — compiled descriptors keyed by widget ID.

- JSON-per-file definitions under a root directory
- Loaded once by init() with a _loaded guard, again by reload()
- In-memory dict keyed by widget ID
- One explicit instance per widget kind, handed to whatever serves
  requests; loading compiles each file through WidgetLoader

Load passes are serialized. Lookups never lock and see either the old
or the new descriptor of an ID during a reload, never a partial one.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from src.widgets.errors import ClientError, LoadError, NotFound
from src.widgets.loader import LoadResult, WidgetLoader
from src.widgets.schemas import WidgetDescriptor

logger = logging.getLogger(__name__)


class WidgetRegistry:
    """Published widget descriptors for one widget kind."""

    def __init__(
        self,
        loader: Optional[WidgetLoader] = None,
        root: Optional[Path] = None,
        prefix: str = "",
    ):
        self.loader = loader or WidgetLoader()
        self.root = Path(root) if root is not None else None
        self.prefix = prefix
        self._widgets: dict[str, WidgetDescriptor] = {}
        self._write_lock = threading.Lock()
        self._loaded = False

    @property
    def kind(self):
        return self.loader.kind

    # ── Lifecycle ────────────────────────────────────────

    def init(self) -> LoadResult:
        """Load the configured root once.

        Raises:
            LoadError: one or more files failed; the rest are published.
        """
        if self._loaded:
            return LoadResult(descriptors=dict(self._widgets))
        if self.root is None:
            raise ValueError("WidgetRegistry has no root directory configured")
        return self.load_from(self.root, self.prefix)

    def load_from(self, root: Path, prefix: str = "") -> LoadResult:
        """Compile every definition under root and publish the successes.

        Each compiled descriptor replaces any earlier entry with its ID.
        A failed file leaves earlier entries, including its own, untouched.

        Raises:
            LoadError: one or more files failed; the rest are published.
        """
        with self._write_lock:
            result = self.loader.compile_dir(root, prefix, known_widgets=list(self._widgets))
            for widget_id, descriptor in sorted(result.descriptors.items()):
                # Copy-on-write: readers keep iterating the map they fetched.
                # One copy per installed ID, so a pass is quadratic in the
                # registry size; fine for hundreds of widgets.
                self._widgets = {**self._widgets, widget_id: descriptor}
            self._loaded = True

        logger.info(f"Loaded {len(result.descriptors)} {self.kind.value} widgets from {root}")
        if not result.ok:
            raise LoadError(result)
        return result

    def reload(self) -> LoadResult:
        """Re-walk the configured root, replacing entries per compiled file."""
        if self.root is None:
            raise ValueError("WidgetRegistry has no root directory configured")
        provider = self.loader.localizer.provider
        if provider is not None and hasattr(provider, "reload"):
            provider.reload()
        return self.load_from(self.root, self.prefix)

    def teardown(self) -> None:
        """Drop every published descriptor."""
        with self._write_lock:
            self._widgets = {}
            self._loaded = False
        logger.info(f"Unloaded {self.kind.value} widgets")

    # ── Accessors ────────────────────────────────────────

    def find(self, widget_id: str) -> Optional[WidgetDescriptor]:
        """Get a descriptor by ID, or None."""
        return self._widgets.get(widget_id)

    def get(self, widget_id: str) -> WidgetDescriptor:
        """Get a descriptor by ID.

        Raises:
            NotFound: no widget is published under widget_id.
        """
        descriptor = self._widgets.get(widget_id)
        if descriptor is None:
            raise NotFound(widget_id)
        return descriptor

    def must_get(self, widget_id: str) -> WidgetDescriptor:
        """Get a descriptor for a request, failing with a 400-class error."""
        try:
            return self.get(widget_id)
        except NotFound as e:
            raise ClientError(widget_id, e.message) from e

    def list_ids(self) -> list[str]:
        return sorted(self._widgets)

    def list_all(self) -> list[WidgetDescriptor]:
        widgets = self._widgets
        return [widgets[k] for k in sorted(widgets)]

    def count(self) -> int:
        return len(self._widgets)

    def __contains__(self, widget_id: str) -> bool:
        return widget_id in self._widgets
