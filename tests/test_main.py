import socket

from custombangs import main as cli
from custombangs.core.catalog import BangCatalog, CatalogEntry
from custombangs.core.config_model import AppConfig


def _config(tmp_path):
    return AppConfig(
        debug=False,
        preferences_path=tmp_path / "prefs.json",
        primary_catalog_url="https://bangs.example/primary.json",
        fallback_catalog_url="https://bangs.example/fallback.json",
        fetch_timeout=1.0,
        proxy_host="127.0.0.1",
        proxy_port=8899,
    )


def _run(monkeypatch, tmp_path, argv):
    monkeypatch.setattr(cli, "load_app_config", lambda: _config(tmp_path))

    def fake_load(self):
        self.catalog = BangCatalog(
            {"w": CatalogEntry("w", "https://en.wikipedia.org/w/index.php?search={{{s}}}")},
            symbol=self.store.get("bang-symbol") or "!",
        )
        return self.catalog

    monkeypatch.setattr(cli.CustomBangs, "load", fake_load)
    return cli.main(argv)


def test_resolve_prints_destination(monkeypatch, tmp_path, capsys):
    assert _run(monkeypatch, tmp_path, ["resolve", "!w einstein"]) == 0
    assert capsys.readouterr().out.strip() == "https://en.wikipedia.org/w/index.php?search=einstein"


def test_resolve_without_bang_fails(monkeypatch, tmp_path):
    assert _run(monkeypatch, tmp_path, ["resolve", "einstein"]) == 1


def test_bang_crud(monkeypatch, tmp_path, capsys):
    assert _run(monkeypatch, tmp_path, ["bangs", "add", "foo", "https://foo.example/?q={{{s}}}", "--no-encode"]) == 0
    assert _run(monkeypatch, tmp_path, ["bangs", "add", "foo", "https://foo.example/?q={{{s}}}"]) == 1
    capsys.readouterr()

    assert _run(monkeypatch, tmp_path, ["bangs", "list"]) == 0
    assert "!foo" in capsys.readouterr().out

    assert _run(monkeypatch, tmp_path, ["bangs", "remove", "foo"]) == 0
    assert _run(monkeypatch, tmp_path, ["bangs", "remove", "foo"]) == 1


def test_symbol_setting(monkeypatch, tmp_path, capsys):
    assert _run(monkeypatch, tmp_path, ["symbol", "@"]) == 0
    assert _run(monkeypatch, tmp_path, ["symbol"]) == 0
    assert capsys.readouterr().out.strip() == "@"
    assert _run(monkeypatch, tmp_path, ["resolve", "@w einstein"]) == 0


def test_corrupt_preferences_are_reported(monkeypatch, tmp_path, capsys):
    (tmp_path / "prefs.json").write_text("{not json", encoding="utf-8")

    assert _run(monkeypatch, tmp_path, ["bangs", "list"]) == 1
    assert _run(monkeypatch, tmp_path, ["bangs", "remove", "foo"]) == 1
    assert _run(monkeypatch, tmp_path, ["symbol"]) == 1
    assert "Could not read preferences" in capsys.readouterr().err


def test_proxy_address_resolves_host_names(monkeypatch):
    monkeypatch.setattr(cli.socket, "gethostbyname", lambda host: "127.0.0.1")
    assert str(cli.proxy_address("localhost")) == "127.0.0.1"
    assert str(cli.proxy_address("::1")) == "::1"


def test_serve_rejects_unresolvable_host(monkeypatch, tmp_path, capsys):
    def unresolvable(host):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(cli.socket, "gethostbyname", unresolvable)
    assert _run(monkeypatch, tmp_path, ["serve", "--host", "no-such-host.invalid"]) == 1
    assert "Cannot resolve proxy host 'no-such-host.invalid'" in capsys.readouterr().err
