"""Discover definition files and compile them into descriptors.

One load pass:

1. Walks the root for ``*.json`` files and derives each file's ID
2. Rejects every ID claimed by more than one file (DuplicateID)
3. Compiles the remaining files in parallel: parse, bind, merge,
   validate, localize
4. Fails every compiled widget whose ``bind.table`` names a widget that
   is neither published nor compiled in this pass
5. Returns a LoadResult with the compiled descriptors and the per-file
   failures; one bad file never stops the others
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Optional

from src.widgets.binder import Binder
from src.widgets.errors import DuplicateID, UnresolvedReference, WidgetError
from src.widgets.localizer import Localizer
from src.widgets.merger import merge_overlays
from src.widgets.parser import parse_definition
from src.widgets.paths import widget_id
from src.widgets.schemas import WidgetDescriptor, WidgetKind
from src.widgets.validator import Validator

logger = logging.getLogger(__name__)

DEFINITION_SUFFIX = ".json"


def discover(root: Path, prefix: str = "") -> dict[str, list[Path]]:
    """Map each widget ID under root to the files claiming it."""
    found: dict[str, list[Path]] = defaultdict(list)
    for path in sorted(root.rglob(f"*{DEFINITION_SUFFIX}")):
        if path.is_file():
            found[widget_id(root, path, prefix)].append(path)
    return dict(found)


@dataclass
class LoadResult:
    """Outcome of one load pass: partial success is normal."""

    descriptors: dict[str, WidgetDescriptor] = field(default_factory=dict)
    failures: list[tuple[str, WidgetError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_ids(self) -> list[str]:
        return [widget_id for widget_id, _ in self.failures]


class WidgetLoader:
    """Runs the compile pipeline over a directory of definitions."""

    def __init__(
        self,
        binder: Optional[Binder] = None,
        validator: Optional[Validator] = None,
        localizer: Optional[Localizer] = None,
        kind: WidgetKind = WidgetKind.TABLE,
        api_namespace: str = "__yao",
        workers: int = 4,
    ):
        self.binder = binder or Binder()
        self.validator = validator or Validator()
        self.localizer = localizer or Localizer()
        self.kind = kind
        self.api_namespace = api_namespace
        self.workers = max(1, workers)

    def compile(
        self,
        data: bytes,
        widget_id: str,
        known_widgets: Collection[str] = (),
    ) -> WidgetDescriptor:
        """Compile one definition. Raises a WidgetError subclass on failure."""
        descriptor = parse_definition(data, widget_id, self.kind)
        descriptor = self.binder.bind(descriptor, known_widgets)
        descriptor = merge_overlays(descriptor, self.api_namespace)
        self.validator.validate(descriptor)
        self.localizer.apply(descriptor)
        return descriptor

    def compile_file(
        self,
        path: Path,
        widget_id: str,
        known_widgets: Collection[str] = (),
    ) -> WidgetDescriptor:
        with open(path, "rb") as f:
            data = f.read()
        return self.compile(data, widget_id, known_widgets)

    def compile_dir(
        self,
        root: Path,
        prefix: str = "",
        known_widgets: Collection[str] = (),
    ) -> LoadResult:
        """Compile every definition under root.

        Args:
            root: Directory to walk recursively.
            prefix: Namespace prepended to every derived ID.
            known_widgets: IDs already published, for ``bind.table``.

        Raises:
            FileNotFoundError: root does not exist.
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"{root} does not exist")

        claims = discover(root, prefix)
        result = LoadResult()

        pending: dict[str, Path] = {}
        for wid, paths in claims.items():
            if len(paths) > 1:
                result.failures.append((wid, DuplicateID(wid, paths)))
            else:
                pending[wid] = paths[0]

        known = set(known_widgets) | set(pending)
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {
                pool.submit(self.compile_file, path, wid, known): wid
                for wid, path in pending.items()
            }
            for future in as_completed(futures):
                wid = futures[future]
                try:
                    result.descriptors[wid] = future.result()
                except WidgetError as e:
                    result.failures.append((wid, e))
                except OSError as e:
                    result.failures.append((wid, WidgetError(wid, str(e))))
                except Exception as e:
                    logger.exception(f"Unexpected error compiling {self.kind.value} {wid}")
                    result.failures.append((wid, WidgetError(wid, f"{type(e).__name__}: {e}")))

        self._drop_unresolved_tables(result, set(known_widgets))

        result.failures.sort(key=lambda failure: failure[0])
        for wid, error in result.failures:
            logger.error(f"Failed to load {self.kind.value} {wid}: {error.message}")
        logger.info(
            f"Compiled {len(result.descriptors)} {self.kind.value} widgets from {root} "
            f"({len(result.failures)} failed)"
        )
        return result

    @staticmethod
    def _drop_unresolved_tables(result: LoadResult, published: set[str]) -> None:
        """Fail every descriptor whose ``bind.table`` did not compile.

        Repeats until stable, so a chain of references fails as a whole.
        """
        while True:
            available = published | set(result.descriptors)
            dangling = [
                (wid, d.action.bind.table)
                for wid, d in result.descriptors.items()
                if d.action.bind.table and d.action.bind.table not in available
            ]
            if not dangling:
                return
            for wid, table in dangling:
                del result.descriptors[wid]
                result.failures.append(
                    (wid, UnresolvedReference(wid, table, "action.bind.table"))
                )
