"""Apply locale packs to the translatable strings of a descriptor.

Language packs live under ``<root>/langs/<locale>/``:

    global.yml              messages shared by every widget
    tables/<id path>.yml    messages for one table widget
    forms/<id path>.yml     messages for one form widget

Each file is a flat YAML mapping from source text to translation. A
source string written as ``::key`` is a translation key; the marker is
removed even when no translation exists.

Widget pack paths map to IDs the same way definition files do, so
``tables/admin/Users.tab.yml`` holds the messages of ``admin.users``.
A pack file that cannot be read or parsed is logged and skipped.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from src.widgets.paths import widget_id
from src.widgets.schemas import WidgetDescriptor, WidgetKind

logger = logging.getLogger(__name__)

KEY_MARKER = "::"

# Prop keys whose string values are shown to users
TRANSLATABLE_PROPS = {"label", "title", "placeholder", "help", "text"}


class LocaleOverlay:
    """Messages for one locale: global plus per-widget."""

    def __init__(
        self,
        locale: str,
        messages: Optional[dict[str, str]] = None,
        widgets: Optional[dict[tuple[WidgetKind, str], dict[str, str]]] = None,
    ):
        self.locale = locale
        self.messages = dict(messages or {})
        self.widgets = dict(widgets or {})

    def dictionary(self, kind: WidgetKind, widget_id: str) -> dict[str, str]:
        """Global messages overridden by the widget's own."""
        return {**self.messages, **self.widgets.get((kind, widget_id), {})}

    def apply(self, descriptor: WidgetDescriptor) -> None:
        """Translate descriptor strings in place."""
        messages = self.dictionary(descriptor.kind, descriptor.id)

        def translate(text: str) -> str:
            if text.startswith(KEY_MARKER):
                key = text[len(KEY_MARKER):]
                return messages.get(key, key)
            return messages.get(text, text)

        descriptor.name = translate(descriptor.name)
        if descriptor.layout is not None:
            _translate_tree(descriptor.layout.header, translate)
        for items in (descriptor.fields.filter, descriptor.fields.table):
            for f in items.values():
                f.label = translate(f.label)
                for _, component in f.components():
                    _translate_tree(component.props, translate)


def _is_remote(node: dict) -> bool:
    return set(node) == {"api", "params"}


def _translate_tree(node: Any, translate) -> None:
    if isinstance(node, dict):
        if _is_remote(node):
            return
        for key, value in node.items():
            if key in TRANSLATABLE_PROPS and isinstance(value, str):
                node[key] = translate(value)
            else:
                _translate_tree(value, translate)
    elif isinstance(node, list):
        for item in node:
            _translate_tree(item, translate)


class LocaleProvider(Protocol):
    def active_locale(self) -> Optional[LocaleOverlay]: ...


def _read_messages(path: Path) -> dict[str, str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.error(f"Failed to load language file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring language file {path}: not a mapping")
        return {}
    return {str(k): str(v) for k, v in data.items()}


class LangPacks:
    """Locale provider reading YAML packs from an application root."""

    def __init__(self, root: Path, locale: str = "", prefix: str = ""):
        self.root = Path(root)
        self.locale = locale.lower()
        self.prefix = prefix
        self._overlay: Optional[LocaleOverlay] = None
        self._loaded = False
        self._lock = threading.Lock()

    def load(self) -> None:
        with self._lock:
            if not self._loaded:
                self._load()
                self._loaded = True

    def _load(self) -> None:
        if not self.locale:
            return

        locale_dir = self.root / "langs" / self.locale
        if not locale_dir.exists():
            logger.warning(f"Language pack not found: {locale_dir}")
            return

        messages: dict[str, str] = {}
        global_file = locale_dir / "global.yml"
        if global_file.exists():
            messages = _read_messages(global_file)

        widgets: dict[tuple[WidgetKind, str], dict[str, str]] = {}
        for kind in WidgetKind:
            kind_dir = locale_dir / f"{kind.value}s"
            if not kind_dir.is_dir():
                continue
            for yml in sorted(kind_dir.rglob("*.yml")):
                key = (kind, widget_id(kind_dir, yml, self.prefix))
                widgets[key] = {**widgets.get(key, {}), **_read_messages(yml)}

        self._overlay = LocaleOverlay(self.locale, messages, widgets)
        logger.info(
            f"Loaded language pack {self.locale}: "
            f"{len(messages)} global messages, {len(widgets)} widget packs"
        )

    def reload(self) -> None:
        """Forget the cached pack; the next lookup reads the files again."""
        with self._lock:
            self._loaded = False
            self._overlay = None

    def active_locale(self) -> Optional[LocaleOverlay]:
        self.load()
        return self._overlay


class Localizer:
    """Applies the provider's active locale, if there is one."""

    def __init__(self, provider: Optional[LocaleProvider] = None):
        self.provider = provider

    def apply(self, descriptor: WidgetDescriptor) -> bool:
        """Translate descriptor in place. Returns whether a locale was applied."""
        if self.provider is None:
            return False
        overlay = self.provider.active_locale()
        if overlay is None:
            return False
        overlay.apply(descriptor)
        return True
