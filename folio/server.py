"""Preview server for Folio.

Serves the built site with live reload while content is being written:
- Injects a reload script into HTML responses.
- Rejects directory listings and missing paths with a 404.
- Watches the content directory and folio.yaml, rebuilds on change and
  tells connected browsers to reload.

A rebuild that fails (bad header, failing checks, broken layout) is
reported and the previous output keeps being served.

Key classes:
- PreviewServer: Runs the HTTP server, reload websocket and watcher.
- _ReloadHandler: HTTP request handler that injects the reload script.
- _ChangeHandler: File system event handler that triggers rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import click
import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import CONFIG_FILENAME, BuildError, ConfigError, build_site, load_config
from .checks import CheckFailed
from .frontmatter import HeaderError

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  ws.onmessage = (event) => {{
    const data = JSON.parse(event.data || '{{}}');
    if (data.type === 'reload') location.reload();
  }};
}})();
</script>
"""


def inject_reload_script(html: str, script: str) -> str:
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>", 1)
    return html + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects the live reload script into HTML pages."""

    reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=4001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._send_not_found()

    def log_message(self, format, *args):  # pragma: no cover - quiet console
        return None

    def _send_html(self, status: int, content: str):
        encoded = inject_reload_script(content, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)
        return None

    def _send_not_found(self):
        error_page = Path(self.directory) / "404" / "index.html"
        if error_page.exists():
            return self._send_html(404, error_page.read_text(encoding="utf-8"))
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            path = path / "index.html"
        if not path.is_file():
            return self._send_not_found()
        if path.suffix == ".html":
            return self._send_html(200, path.read_text(encoding="utf-8"))
        return super().send_head()


class PreviewServer:
    """Preview server with live reload.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory the built site is served from.
        http_port: Port for the HTTP server.
        ws_port: Port for the reload websocket.
    """

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config.get("output_dir", "output")
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self.http_port = int(http_port or self.config.get("port", 4000))
        if ws_port is not None:
            self.ws_port = int(ws_port)
        elif http_port is not None:
            self.ws_port = self.http_port + 1
        else:
            self.ws_port = int(self.config.get("ws_port", self.http_port + 1))
        self._reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=self.ws_port)
        self._root_url = f"http://localhost:{self.http_port}"
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._last_signature: tuple | None = None
        self._pending = False

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - integration path
        self.rebuild(include_drafts, force=True, notify=False)
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        click.echo(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            click.echo(f"Reload server failed to start (port {self.ws_port}): {exc}", err=True)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "localhost", self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str) -> None:
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        self._ws_clients -= stale

    def _start_watcher(self, include_drafts: bool) -> None:
        handler = _ChangeHandler(self, include_drafts)
        observer = Observer()
        content_dir = self.project_root / self.config.get("content_dir", "content")
        if content_dir.exists():
            observer.schedule(handler, str(content_dir), recursive=True)
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def rebuild(self, include_drafts: bool, force: bool = False, notify: bool = True) -> bool:
        """Rebuild into staging and swap it in.

        A change reported while a rebuild is running is queued and picked up
        as soon as that rebuild finishes.

        Args:
            include_drafts: Whether to include draft documents.
            force: Rebuild even if no source file changed.
            notify: Broadcast a reload to connected browsers.

        Returns:
            True if a new build was activated.
        """
        if not self._lock.acquire(blocking=False):
            self._pending = True
            return False
        try:
            activated = False
            while True:
                self._pending = False
                if self._rebuild_once(include_drafts, force, notify):
                    activated = True
                force = False
                if not self._pending:
                    return activated
        finally:
            self._lock.release()

    def _rebuild_once(self, include_drafts: bool, force: bool, notify: bool) -> bool:
        signature = self._compute_signature()
        if not force and signature == self._last_signature:
            return False
        staging = self._prepare_staging_dir()
        try:
            result = build_site(
                self.project_root,
                include_drafts=include_drafts,
                root_url=self._root_url,
                output_dir_override=staging,
            )
        except CheckFailed as exc:
            click.echo(click.style(f"Content checks failed: {exc}", fg="red"), err=True)
            for issue in exc.report.errors:
                click.echo(f"  {self._relative(issue.path)}: {issue.message}", err=True)
            return False
        except (BuildError, HeaderError, ConfigError, FileNotFoundError) as exc:
            click.echo(click.style(f"Build failed: {exc}", fg="red"), err=True)
            return False
        # only a build that succeeded marks the sources as seen
        self._last_signature = signature
        self._activate_staging(staging)
        click.echo(f"Built {len(result.documents)} documents")
        if notify:
            self._broadcast_reload()
        return True

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return str(path)

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        content_dir = self.project_root / self.config.get("content_dir", "content")
        paths = sorted(content_dir.rglob("*")) if content_dir.exists() else []
        config_path = self.project_root / CONFIG_FILENAME
        if config_path.exists():
            paths.append(config_path)
        for path in paths:
            if path.is_dir():
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((path.as_posix(), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        previous = self.output_dir.with_name(self.output_dir.name + ".previous")
        if previous.exists():
            shutil.rmtree(previous)
        if self.output_dir.exists():
            os.replace(self.output_dir, previous)
        os.replace(staging, self.output_dir)
        if previous.exists():
            shutil.rmtree(previous)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: PreviewServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        if path.parent == self.server.project_root and path.name != CONFIG_FILENAME:
            return
        self.server.rebuild(self.include_drafts)
