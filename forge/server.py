"""Development server for Forge.

Serves the built site with live reload for local authoring:
- Injects a reload script into HTML responses.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Watches source folders and the config file, coalesces bursts of changes and
  rebuilds, then tells connected browsers to reload.

A failed rebuild is logged and the previous output keeps being served.

Key classes:
- DevServer: Main class for running the development server.
- _ReloadHandler: HTTP request handler that injects reload script and enforces 404s.
- _ChangeHandler: File system event handler that signals a pending rebuild.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import queue
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import PipelineOrchestrator
from .config import CONFIG_FILENAME, SiteConfig, load_config
from .errors import ConfigError, ForgeError
from .i18n import TRANSLATIONS_DIR

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript code for WebSocket connection to trigger reloads.
    """

    reload_script_template = """
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
    reload_script = reload_script_template.format(ws_port=3001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _inject(self, content: str) -> str:
        if "</body>" in content:
            return content.replace("</body>", f"{self.reload_script}</body>")
        return content + self.reload_script

    def _send_html(self, status: int, content: str) -> None:
        encoded = self._inject(content).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        """Serve 404.html (when present) with injected reload script and a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(404, error_page.read_text(encoding="utf-8"))
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if not index_path.exists():
                return self._serve_404()
            path_obj = index_path
        elif not path_obj.exists():
            return self._serve_404()

        if path_obj.suffix == ".html":
            self._send_html(200, path_obj.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        site_dir: Site root directory.
        config: Most recently loaded site configuration.
        include_drafts: Whether rebuilds include draft posts.
        http_port: Port for the HTTP server.
        ws_port: Port for WebSocket connections.
        output_dir: Directory the built site is served from.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        port: int | None = None,
        ws_port: int | None = None,
        include_drafts: bool = False,
    ):
        """Initialize the development server.

        Args:
            site_dir: Site root directory.
            config: Site configuration loaded at startup.
            port: Optional override for the configured HTTP port.
            ws_port: Optional WebSocket port; defaults to the HTTP port plus one.
            include_drafts: Build draft posts too.
        """
        self.site_dir = site_dir
        self.http_port = int(port or config.port)
        self.ws_port = ws_port if ws_port is not None else self.http_port + 1
        self.include_drafts = include_drafts
        self.config = self._dev_config(config)
        self.output_dir = site_dir / self.config.build.output_dir
        self._reload_script = _ReloadHandler.reload_script_template.format(ws_port=self.ws_port)
        self._signals: queue.Queue[bool] = queue.Queue(maxsize=1)
        self._pending = False
        self._stop = threading.Event()
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()

    def _dev_config(self, config: SiteConfig) -> SiteConfig:
        # Dev builds always link to the local server.
        build = dataclasses.replace(
            config.build, include_drafts=config.build.include_drafts or self.include_drafts
        )
        return dataclasses.replace(
            config, base_url=f"http://localhost:{self.http_port}", build=build
        )

    @property
    def config_path(self) -> Path:
        return self.site_dir / CONFIG_FILENAME

    def start(self) -> None:  # pragma: no cover - integration path
        if not self.rebuild():
            logger.warning("Initial build failed; serving whatever output exists")
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        threading.Thread(target=self._debounce_loop, daemon=True).start()
        self._start_watcher()
        try:
            while not self._stop.is_set():
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        self._stop.set()
        if self._observer:
            self._observer.stop()
            self._observer.join()
        if self._httpd:
            self._httpd.shutdown()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _handler_factory(self, handler_cls):
        """Return a request handler factory bound to the current output directory.

        The directory is read per request so a rebuild that moves the output
        is picked up without restarting the HTTP server.
        """

        def factory(*args, **kwargs):
            return handler_cls(*args, directory=str(self.output_dir), **kwargs)

        return factory

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        self._httpd = ThreadingHTTPServer(("", self.http_port), self._handler_factory(handler_cls))
        logger.info("Serving %s at http://localhost:%d", self.output_dir, self.http_port)
        self._httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %d): %s", self.ws_port, exc)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except (OSError, websockets.ConnectionClosed):
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def watched_dirs(self) -> list[Path]:
        """Source folders whose changes trigger a rebuild, resolved from the current config."""
        build = self.config.build
        return [
            self.site_dir / build.content_dir,
            self.site_dir / build.templates_dir,
            self.site_dir / build.static_dir,
            self.site_dir / "themes",
            self.site_dir / TRANSLATIONS_DIR,
        ]

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for watch_path in self.watched_dirs():
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        # Root for forge.yaml; the handler ignores every other root file.
        observer.schedule(handler, str(self.site_dir), recursive=False)
        observer.start()
        self._observer = observer

    def signal(self) -> None:
        """Record that sources changed. Extra signals while one is queued are dropped."""
        try:
            self._signals.put_nowait(True)
        except queue.Full:
            pass

    def tick(self) -> bool:
        """Advance the debounce timer by one interval.

        Signals received since the previous tick are coalesced into a single
        rebuild, so a burst of events yields one rebuild at most one interval
        after it started.

        Returns:
            True if a rebuild ran.
        """
        while True:
            try:
                self._signals.get_nowait()
            except queue.Empty:
                break
            self._pending = True
        if not self._pending:
            return False
        self._pending = False
        self.rebuild()
        return True

    def _debounce_loop(self) -> None:  # pragma: no cover - integration path
        while not self._stop.wait(DEBOUNCE_SECONDS):
            self.tick()

    def reload_config(self) -> SiteConfig:
        """Load configuration from disk, keeping the previous one if that fails."""
        try:
            self.config = self._dev_config(load_config(self.site_dir))
        except (ConfigError, OSError) as exc:
            logger.error("Config reload failed, keeping previous configuration: %s", exc)
        return self.config

    def rebuild(self) -> bool:
        """Run a full build and notify browsers.

        Returns:
            True if the build succeeded. Failures are logged, never raised.
        """
        config = self.reload_config()
        logger.info("Rebuilding...")
        try:
            result = PipelineOrchestrator(self.site_dir, config).run()
        except Exception as exc:
            # The server keeps running and serving the previous output.
            logger.error("Rebuild failed: %s", exc, exc_info=not isinstance(exc, ForgeError))
            return False
        self.output_dir = result.output_dir
        logger.info(
            "Rebuilt %d post(s) and %d page(s)", len(result.site.posts), len(result.site.pages)
        )
        self._broadcast_reload()
        return True


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in (
            "created",
            "modified",
            "deleted",
            "moved",
        ):
            return
        paths = [Path(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(Path(dest))
        if any(self._relevant(path) for path in paths):
            self.server.signal()

    def _relevant(self, path: Path) -> bool:
        if path == self.server.config_path:
            return True
        for folder in self.server.watched_dirs():
            try:
                path.relative_to(folder)
            except ValueError:
                continue
            return True
        return False
