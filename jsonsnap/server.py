"""JSON HTTP API over the snapshot store.

Routes:
    GET    /api/backups                      list snapshots, newest first
    POST   /api/backups/restore/<filename>   restore a snapshot over its tracked file
    DELETE /api/backups/<filename>           delete one snapshot
    PUT    /api/site-info                    replace brandInfo.json (backed up first)
    GET    /api/health                       liveness

Errors come back as {"success": false, "error", "details"}: 404 for missing
snapshots or files, 400 for names that are invalid or belong to no tracked
file, 500 for everything else.

Usage:
    server = BackupServer(store, tracked, port=5000)
    server.start()          # background thread, or server.serve_forever()
    ...
    server.stop()
"""

import json
import re
import threading
import uuid
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

from jsonsnap.errors import ClassificationError, MutationError, NotFoundError
from jsonsnap.gateway import MutationGateway
from jsonsnap.restore import restore_snapshot

_RESTORE_ROUTE = re.compile(r"^/api/backups/restore/([^/]+)$")
_SNAPSHOT_ROUTE = re.compile(r"^/api/backups/([^/]+)$")


def _now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _status_for(error):
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (ClassificationError, ValueError)):
        return 400
    return 500


class _ApiHandler(BaseHTTPRequestHandler):
    """Request handler for the backup API."""

    def log_message(self, fmt, *args):
        pass  # suppress default stdout access log

    def _path(self):
        return urlsplit(self.path).path.rstrip("/") or "/"

    def _send_json(self, status, payload):
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, error, message):
        self._send_json(_status_for(error), {
            "success": False,
            "error": message,
            "details": str(error),
        })

    def _read_json(self):
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            return None
        raw = self.rfile.read(length) if length > 0 else b""
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

    def _not_found(self):
        self._send_json(404, {"success": False, "error": f"No route for {self.command} {self._path()}"})

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def do_GET(self):
        path = self._path()
        if path == "/api/health":
            self._send_json(200, {"message": "API is working!"})
        elif path == "/api/backups":
            self._list_backups()
        else:
            self._not_found()

    def do_POST(self):
        match = _RESTORE_ROUTE.match(self._path())
        if not match:
            self._not_found()
            return
        self._restore(unquote(match.group(1)))

    def do_DELETE(self):
        match = _SNAPSHOT_ROUTE.match(self._path())
        if not match or match.group(1) == "restore":
            self._not_found()
            return
        self._delete(unquote(match.group(1)))

    def do_PUT(self):
        if self._path() != "/api/site-info":
            self._not_found()
            return
        self._update_site_info()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _list_backups(self):
        try:
            snapshots = self.server.store.list()
        except Exception as e:
            self._send_error(e, "Could not read backups")
            return
        self._send_json(200, [
            {
                "filename": s["filename"],
                "path": s["path"],
                "size": s["size"],
                "date": s["date"],
                "displayDate": s["displayDate"],
                "category": s["category"],
                "reason": s["reason"],
            }
            for s in snapshots
        ])

    def _restore(self, filename):
        try:
            result = restore_snapshot(self.server.store, self.server.tracked, filename)
        except Exception as e:
            self._send_error(e, "Could not restore backup")
            return
        self._send_json(200, {
            "success": True,
            "message": "Backup restored",
            "target": result["tracked"],
            "backupCreated": result["backupCreated"],
            "backupError": result["backupError"],
        })

    def _delete(self, filename):
        try:
            self.server.store.delete(filename)
        except Exception as e:
            self._send_error(e, "Could not delete backup")
            return
        self._send_json(200, {"success": True, "message": f"Backup {filename} deleted"})

    def _update_site_info(self):
        payload = self._read_json()
        if not isinstance(payload, dict):
            self._send_json(400, {
                "success": False,
                "error": "Invalid data",
                "details": "expected a JSON object body",
            })
            return

        request_id = uuid.uuid4().hex[:8]
        try:
            result = self.server.gateway.update_site_info(payload)
        except MutationError as e:
            self._send_json(500, {
                "success": False,
                "message": "Could not update site info",
                "error": str(e),
                "details": str(e),
                "requestId": request_id,
                "timestamp": _now_iso(),
                "backupCreated": e.backup,
                "rolledBack": e.rolled_back,
            })
            return
        except Exception as e:
            self._send_json(_status_for(e), {
                "success": False,
                "message": "Could not update site info",
                "error": str(e),
                "details": str(e),
                "requestId": request_id,
                "timestamp": _now_iso(),
            })
            return

        self._send_json(200, {
            "success": True,
            "message": "Site info updated",
            "timestamp": _now_iso(),
            "backupCreated": result["backupCreated"],
            "backupError": result["backupError"],
        })


class _ApiServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, *args, store, tracked, **kwargs):
        super().__init__(*args, **kwargs)
        self.store = store
        self.tracked = tracked
        self.gateway = MutationGateway(store, tracked)


class BackupServer:
    """Threaded HTTP server for the backup API.

    port=0 binds a free port; read .port after construction.
    """

    def __init__(self, store, tracked, host="127.0.0.1", port=0):
        self._server = _ApiServer((host, port), _ApiHandler, store=store, tracked=tracked)
        self.host, self.port = self._server.server_address[:2]
        self._thread = None

    @property
    def url(self):
        return f"http://{self.host}:{self.port}"

    def start(self):
        """Serve in a background daemon thread."""
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="jsonsnap-api",
        )
        self._thread.start()

    def serve_forever(self):
        """Serve in the calling thread until interrupted."""
        try:
            self._server.serve_forever()
        finally:
            self._server.server_close()

    def stop(self):
        """Shut down the server."""
        if self._thread:
            self._server.shutdown()
            self._thread.join()
            self._thread = None
        self._server.server_close()
