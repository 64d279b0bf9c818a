from forge.assets import copy_static_assets, static_dirs
from forge.config import SiteConfig


def test_site_static_overrides_theme_static(tmp_path):
    theme_static = tmp_path / "themes" / "default" / "static"
    (theme_static / "css").mkdir(parents=True)
    (theme_static / "css" / "site.css").write_text("theme", encoding="utf-8")
    (theme_static / "js").mkdir()
    (theme_static / "js" / "app.js").write_text("theme js", encoding="utf-8")
    site_static = tmp_path / "static" / "css"
    site_static.mkdir(parents=True)
    (site_static / "site.css").write_text("site", encoding="utf-8")

    output = tmp_path / "public"
    copied = copy_static_assets(tmp_path, SiteConfig(), output)

    assert copied == 3
    assert (output / "css" / "site.css").read_text(encoding="utf-8") == "site"
    assert (output / "js" / "app.js").read_text(encoding="utf-8") == "theme js"


def test_missing_static_dirs_copy_nothing(tmp_path):
    config = SiteConfig(theme="plain")
    assert static_dirs(tmp_path, config) == [
        tmp_path / "themes" / "plain" / "static",
        tmp_path / "static",
    ]
    assert copy_static_assets(tmp_path, config, tmp_path / "public") == 0
