from types import SimpleNamespace

from click.testing import CliRunner

from forge import __version__
from forge.cache import CACHE_DIR
from forge.cli import cli


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build(monkeypatch, site_dir):
    monkeypatch.chdir(site_dir)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert "Built 2 posts and 1 pages" in result.output
    assert (site_dir / "public" / "index.html").exists()
    assert (site_dir / CACHE_DIR / "manifest.json").exists()


def test_cli_build_passes_flags(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    def fake_build_site(site_dir, drafts=False, force=False):
        called.update(site_dir=site_dir, drafts=drafts, force=force)
        site = SimpleNamespace(posts=[], pages=[])
        return SimpleNamespace(site=site, output_dir=site_dir / "public")

    monkeypatch.setattr("forge.build.build_site", fake_build_site)
    result = CliRunner().invoke(cli, ["build", "--drafts", "--force"])
    assert result.exit_code == 0
    assert called == {"site_dir": tmp_path, "drafts": True, "force": True}
    assert "Built 0 posts and 0 pages" in result.output


def test_cli_build_reports_content_errors(monkeypatch, site_dir):
    (site_dir / "content" / "posts" / "broken.md").write_text("---\ntitle: x\n", encoding="utf-8")
    monkeypatch.chdir(site_dir)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "content/posts/broken.md" in result.output
    assert "Missing closing --- delimiter" in result.output


def test_cli_build_reports_template_errors(monkeypatch, site_dir):
    (site_dir / "templates" / "page.html").write_text("{% if %}", encoding="utf-8")
    monkeypatch.chdir(site_dir)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Template: page.html" in result.output


def test_cli_build_without_config(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_cli_serve_starts_dev_server(monkeypatch, site_dir):
    monkeypatch.chdir(site_dir)
    called = {}

    class DummyServer:
        def __init__(self, site_dir, config, port=None, include_drafts=False):
            called.update(site_dir=site_dir, title=config.title, port=port, drafts=include_drafts)

        def start(self):
            called["started"] = True

    monkeypatch.setattr("forge.server.DevServer", DummyServer)
    result = CliRunner().invoke(cli, ["serve", "--port", "5055", "--drafts"])
    assert result.exit_code == 0, result.output
    assert called == {
        "site_dir": site_dir,
        "title": "Test Site",
        "port": 5055,
        "drafts": True,
        "started": True,
    }


def test_cli_clean_removes_output_and_cache(monkeypatch, site_dir):
    monkeypatch.chdir(site_dir)
    runner = CliRunner()
    runner.invoke(cli, ["build"])
    assert (site_dir / "public").exists()

    result = runner.invoke(cli, ["clean"])
    assert result.exit_code == 0
    assert not (site_dir / "public").exists()
    assert not (site_dir / CACHE_DIR).exists()
    assert "Removed" in result.output
