import asyncio
import functools
import shutil
import threading
import urllib.error
import urllib.request
from http.server import ThreadingHTTPServer

import pytest

from folio import server as server_module
from folio.server import (
    PreviewServer,
    _ChangeHandler,
    _ReloadHandler,
    inject_reload_script,
)


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def test_change_handler_watches_content_and_config(project):
    server = PreviewServer(project)
    calls = []
    server.rebuild = lambda include_drafts: calls.append(include_drafts)
    handler = _ChangeHandler(server, include_drafts=True)

    handler.on_any_event(DummyEvent(str(project / "README.md")))
    handler.on_any_event(DummyEvent(str(project / "content"), is_directory=True))
    assert calls == []

    handler.on_any_event(DummyEvent(str(project / "folio.yaml")))
    handler.on_any_event(DummyEvent(str(project / "content" / "tr" / "index.md")))
    assert calls == [True, True]


def test_async_broadcast_drops_stale_clients(project):
    server = PreviewServer(project)

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class BadWS:
        async def send(self, msg):
            raise ConnectionError("gone")

    good, bad = GoodWS(), BadWS()
    server._ws_clients = {good, bad}
    asyncio.run(server._async_broadcast("reload"))
    assert good.messages == ["reload"]
    assert server._ws_clients == {good}


def test_ports_from_config_and_overrides(project):
    assert (PreviewServer(project).http_port, PreviewServer(project).ws_port) == (4000, 4001)
    server = PreviewServer(project, http_port=5055)
    assert (server.http_port, server.ws_port) == (5055, 5056)
    server = PreviewServer(project, http_port=5055, ws_port=6000)
    assert server.ws_port == 6000

    (project / "folio.yaml").write_text("port: 8000\nws_port: 8100\n", encoding="utf-8")
    assert PreviewServer(project).ws_port == 8100


def test_rebuild_swaps_output_and_keeps_it_on_failure(project, write, capsys):
    server = PreviewServer(project)
    notified = []
    server._broadcast_reload = lambda: notified.append(True)

    assert server.rebuild(False, force=True, notify=False) is True
    index = project / "output" / "index.html"
    assert "http://localhost:4000/tr/" in index.read_text(encoding="utf-8")
    assert not (project / "output.staging").exists()

    assert server.rebuild(False) is False

    write(project / "content", "uses.md", "---\ndescription: untitled\n---\n")
    assert server.rebuild(False) is False
    assert index.exists()
    assert "Content checks failed" in capsys.readouterr().err

    write(project / "content", "uses.md", "---\ntitle: Uses\n---\n")
    assert server.rebuild(False) is True
    assert (project / "output" / "uses" / "index.html").exists()
    assert notified == [True]


def test_inject_reload_script():
    assert inject_reload_script("<body>x</body>", "<s>") == "<body>x<s></body>"
    assert inject_reload_script("x", "<s>") == "x<s>"


@pytest.fixture
def http_server(tmp_path):
    out = tmp_path / "output"
    (out / "about").mkdir(parents=True)
    (out / "index.html").write_text("<body>home</body>", encoding="utf-8")
    (out / "about" / "index.html").write_text("<body>about</body>", encoding="utf-8")
    (out / "rss.xml").write_text("<rss/>", encoding="utf-8")
    (out / "empty").mkdir()

    handler_cls = type("Handler", (_ReloadHandler,), {"reload_script": "<!--reload-->"})
    handler = functools.partial(handler_cls, directory=str(out))
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield out, f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


def fetch(url):
    try:
        with urllib.request.urlopen(url) as response:
            return response.status, response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8")


def test_reload_handler_serves_pages(http_server):
    out, base = http_server
    assert fetch(base + "/") == (200, "<body>home<!--reload--></body>")
    assert fetch(base + "/about/") == (200, "<body>about<!--reload--></body>")
    assert fetch(base + "/rss.xml") == (200, "<rss/>")


def test_reload_handler_404s(http_server):
    out, base = http_server
    assert fetch(base + "/missing/")[0] == 404
    assert fetch(base + "/empty/")[0] == 404

    (out / "404").mkdir()
    (out / "404" / "index.html").write_text("<body>lost</body>", encoding="utf-8")
    assert fetch(base + "/missing/") == (404, "<body>lost<!--reload--></body>")


def test_change_during_rebuild_is_picked_up(project, write, monkeypatch):
    server = PreviewServer(project)
    real_build = server_module.build_site
    calls = []

    def build_while_editing(*args, **kwargs):
        calls.append(True)
        if len(calls) == 1:
            write(project / "content", "uses.md", "---\ntitle: Uses\n---\n")
            # the watcher fires while the first build holds the lock
            assert server.rebuild(False) is False
        return real_build(*args, **kwargs)

    monkeypatch.setattr(server_module, "build_site", build_while_editing)
    assert server.rebuild(False, force=True, notify=False) is True
    assert len(calls) == 2
    assert (project / "output" / "uses" / "index.html").exists()


def test_failed_build_is_retried_on_next_event(project, write, monkeypatch):
    server = PreviewServer(project)
    assert server.rebuild(False, force=True, notify=False) is True
    seen = server._last_signature

    write(project / "content", "uses.md", "---\ntitle: Uses\n---\n")
    real_build = server_module.build_site

    def flaky(*args, **kwargs):
        raise FileNotFoundError("content vanished")

    monkeypatch.setattr(server_module, "build_site", flaky)
    assert server.rebuild(False, notify=False) is False
    assert server._last_signature == seen

    monkeypatch.setattr(server_module, "build_site", real_build)
    assert server.rebuild(False, notify=False) is True
    assert (project / "output" / "uses" / "index.html").exists()


def test_missing_content_dir_keeps_output(project, capsys):
    server = PreviewServer(project)
    assert server.rebuild(False, force=True, notify=False) is True
    shutil.rmtree(project / "content")
    assert server.rebuild(False, notify=False) is False
    assert (project / "output" / "index.html").exists()
    assert "Build failed" in capsys.readouterr().err
