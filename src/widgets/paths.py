"""Widget IDs derived from file locations."""

from pathlib import Path


def widget_id(root: Path, path: Path, prefix: str = "") -> str:
    """Derive a widget ID from a file path under root.

    The path relative to root, with the file name cut at its first dot,
    joined with dots and lowercased: ``root/admin/Users.tab.json`` ->
    ``admin.users``. Definitions and their language packs share this rule.
    """
    rel = path.relative_to(root)
    parts = list(rel.parts[:-1]) + [rel.name.split(".", 1)[0]]
    return prefix + ".".join(parts).lower()
