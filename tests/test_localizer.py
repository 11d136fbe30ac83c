import json
from pathlib import Path

from src.widgets.localizer import LangPacks, LocaleOverlay, Localizer
from src.widgets.merger import merge_overlays
from src.widgets.parser import parse_definition
from src.widgets.schemas import WidgetKind


def _merged(definition: dict, widget_id: str = "users"):
    return merge_overlays(parse_definition(json.dumps(definition).encode(), widget_id))


def _with_options(users_definition: dict) -> dict:
    users_definition["fields"]["table"]["status"]["edit"]["props"] = {
        "placeholder": "::choose_status",
        "items": [{"label": "Enabled", "value": "enabled"}, {"label": "Disabled", "value": "disabled"}],
    }
    return users_definition


def test_overlay_translates_labels_and_options(users_definition):
    d = _merged(_with_options(users_definition))
    overlay = LocaleOverlay(
        "zh-cn",
        messages={"Users": "全局用户", "Name": "名称", "Enabled": "启用", "choose_status": "选择状态"},
        widgets={(WidgetKind.TABLE, "users"): {"Users": "用户", "Disabled": "停用"}},
    )

    overlay.apply(d)

    assert d.name == "用户"
    assert d.fields.table["name"].label == "名称"
    assert d.fields.table["status"].label == "Status"
    props = d.fields.table["status"].edit.props
    assert props["placeholder"] == "选择状态"
    assert props["items"] == [
        {"label": "启用", "value": "enabled"},
        {"label": "停用", "value": "disabled"},
    ]


def test_key_marker_removed_without_translation(users_definition):
    d = _merged(users_definition)

    LocaleOverlay("fr").apply(d)

    assert d.name == "Users"


def test_remote_descriptors_untouched(users_definition):
    d = _merged(users_definition)
    remote = dict(d.fields.table["status"].edit.props["options"])

    LocaleOverlay("zh-cn", messages={"api": "x", "params": "y"}).apply(d)

    assert d.fields.table["status"].edit.props["options"] == remote


def test_no_provider_or_locale_is_noop(users_definition, tmp_path: Path):
    d = _merged(users_definition)
    before = d.model_dump()

    assert Localizer().apply(d) is False
    assert Localizer(LangPacks(tmp_path, "")).apply(d) is False
    assert Localizer(LangPacks(tmp_path, "de")).apply(d) is False
    assert d.model_dump() == before


def test_lang_packs_read_yaml(users_definition, tmp_path: Path):
    pack = tmp_path / "langs" / "zh-cn"
    (pack / "tables" / "admin").mkdir(parents=True)
    (pack / "global.yml").write_text("Name: 名称\nUsers: 全局用户\n", encoding="utf-8")
    (pack / "tables" / "admin" / "users.yml").write_text("Users: 管理员\n", encoding="utf-8")

    d = _merged(users_definition, "admin.users")
    applied = Localizer(LangPacks(tmp_path, "zh-CN")).apply(d)

    assert applied is True
    assert d.name == "管理员"
    assert d.fields.table["name"].label == "名称"


def test_lang_packs_reload(tmp_path: Path):
    pack = tmp_path / "langs" / "de"
    pack.mkdir(parents=True)
    (pack / "global.yml").write_text("Name: Name\n", encoding="utf-8")
    packs = LangPacks(tmp_path, "de")
    assert packs.active_locale().messages == {"Name": "Name"}

    (pack / "global.yml").write_text("Name: Bezeichnung\n", encoding="utf-8")
    packs.reload()

    assert packs.active_locale().messages == {"Name": "Bezeichnung"}


def test_broken_pack_file_is_skipped(users_definition, tmp_path: Path):
    pack = tmp_path / "langs" / "de"
    (pack / "tables").mkdir(parents=True)
    (pack / "global.yml").write_text("Name: [unclosed\n", encoding="utf-8")
    (pack / "tables" / "users.yml").write_text("Users: Benutzer\n", encoding="utf-8")
    (pack / "tables" / "orders.yml").write_bytes(b"\xff\xfeOrders: x\n")

    overlay = LangPacks(tmp_path, "de").active_locale()

    assert overlay.messages == {}
    assert overlay.dictionary(WidgetKind.TABLE, "users") == {"Users": "Benutzer"}
    assert overlay.dictionary(WidgetKind.TABLE, "orders") == {}


def test_widget_packs_use_definition_ids(users_definition, tmp_path: Path):
    pack = tmp_path / "langs" / "de" / "tables" / "admin"
    pack.mkdir(parents=True)
    (pack / "Users.tab.yml").write_text("Users: Benutzer\n", encoding="utf-8")

    packs = LangPacks(tmp_path, "de", prefix="crm.")
    d = _merged(users_definition, "crm.admin.users")
    Localizer(packs).apply(d)

    assert d.name == "Benutzer"
    assert packs.active_locale().dictionary(WidgetKind.TABLE, "admin.users.tab") == {}
