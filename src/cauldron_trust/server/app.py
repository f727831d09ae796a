"""HTTP server for cauldron-trust using stdlib http.server.

Routes:
    GET    /health                    — health check
    GET    /badges                    — badge catalog
    POST   /badges                    — add a catalog badge (admin)
    PATCH  /badges/{id}               — edit or (de)activate a catalog badge (admin)
    GET    /agents/{id}/trust         — trust view for an agent
    GET    /agents/{id}/xp-history    — XP ledger, newest first (?limit=N)
    POST   /agents/{id}/tasks         — record a task completion
    POST   /agents/{id}/feedback      — record a 1-5 rating
    POST   /agents/{id}/xp            — grant XP
    POST   /agents/{id}/badges        — grant a badge manually

The caller is identified by the ``X-User-Id`` request header.

Usage:
    python -m cauldron_trust.server.app --port 8080
    python -m cauldron_trust.server.app --host 127.0.0.1 --port 9000
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from cauldron_trust.config import Settings, configure_logging, load_settings
from cauldron_trust.engine import build_engine
from cauldron_trust.middleware.rbac import RBACMiddleware
from cauldron_trust.registry.agent_directory import AgentDirectory
from cauldron_trust.server import routes

logger = logging.getLogger(__name__)

# URL pattern for /agents/{id}/{resource}
_AGENT_RESOURCE_PATTERN = re.compile(r"^/agents/([^/]+)/([a-z-]+)$")
_BADGE_PATTERN = re.compile(r"^/badges/([^/]+)$")


class TrustRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the trust server.

    Implements routing for GET, POST and PATCH methods across all supported
    endpoints. All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Override to route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")
        params = urllib.parse.parse_qs(parsed.query)
        user_id = self._user_id()

        if path == "/health":
            status, data = routes.handle_health()
            self._send_json(status, data)
            return
        if path == "/badges":
            status, data = routes.handle_list_badges(user_id)
            self._send_json(status, data)
            return

        match = _AGENT_RESOURCE_PATTERN.match(path)
        if match:
            agent_id = urllib.parse.unquote(match.group(1))
            resource = match.group(2)
            if resource == "trust":
                status, data = routes.handle_get_trust(agent_id, user_id)
                self._send_json(status, data)
                return
            if resource == "xp-history":
                limit = self._first_param(params, "limit")
                status, data = routes.handle_xp_history(agent_id, user_id, limit=limit)
                self._send_json(status, data)
                return

        self._send_json(404, {"error": "Not found", "detail": f"No route for GET {path}"})

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")

        if path == "/badges":
            body = self._read_json_body()
            if body is not None:
                status, data = routes.handle_create_badge(body, self._user_id())
                self._send_json(status, data)
            return

        match = _AGENT_RESOURCE_PATTERN.match(path)
        handler = _POST_ROUTES.get(match.group(2)) if match else None
        if match is None or handler is None:
            self._send_json(404, {"error": "Not found", "detail": f"No route for POST {path}"})
            return

        body = self._read_json_body()
        if body is None:
            return

        agent_id = urllib.parse.unquote(match.group(1))
        status, data = handler(agent_id, body, self._user_id())
        self._send_json(status, data)

    # ── PATCH ─────────────────────────────────────────────────────────────────

    def do_PATCH(self) -> None:
        """Handle PATCH /badges/{id}."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/")

        match = _BADGE_PATTERN.match(path)
        if match is None:
            self._send_json(404, {"error": "Not found", "detail": f"No route for PATCH {path}"})
            return

        body = self._read_json_body()
        if body is None:
            return

        badge_id = urllib.parse.unquote(match.group(1))
        status, data = routes.handle_update_badge(badge_id, body, self._user_id())
        self._send_json(status, data)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _user_id(self) -> str | None:
        value = self.headers.get("X-User-Id")
        if value is None or not value.strip():
            return None
        return value.strip()

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if parsing fails or the
        body is not a JSON object.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "Invalid JSON", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(400, {"error": "Invalid JSON", "detail": "Body must be a JSON object."})
            return None
        return parsed

    @staticmethod
    def _first_param(params: dict[str, list[str]], key: str) -> str | None:
        """Return the first value for *key* from query parameters, or None."""
        values = params.get(key)
        return values[0] if values else None


_POST_ROUTES = {
    "tasks": routes.handle_record_task,
    "feedback": routes.handle_feedback,
    "xp": routes.handle_award_xp,
    "badges": routes.handle_award_badge,
}


def configure_from_settings(settings: Settings) -> None:
    """Install an engine, agent directory, and role assignments built from *settings*."""
    directory = AgentDirectory()
    for agent_id, owner_id in sorted(settings.agents.items()):
        directory.register(agent_id, owner_id=owner_id)

    rbac = RBACMiddleware()
    for user_id, role_names in sorted(settings.user_roles.items()):
        for role_name in role_names:
            rbac.assign_role(user_id, role_name)

    routes.reset_state(
        engine=build_engine(settings, directory=directory),
        rbac=rbac,
        directory=directory,
    )
    logger.info(
        "Trust server configured with %d agents and %d users", len(directory), len(settings.user_roles)
    )


def create_server(host: str = "127.0.0.1", port: int = 8080) -> ThreadingHTTPServer:
    """Create (but do not start) the trust HTTP server.

    Parameters
    ----------
    host:
        Bind address (default ``"127.0.0.1"``).
    port:
        TCP port to listen on (default 8080).

    Returns
    -------
    ThreadingHTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    server = ThreadingHTTPServer((host, port), TrustRequestHandler)
    logger.info("cauldron-trust server created at http://%s:%d", host, port)
    return server


def run_server(host: str = "127.0.0.1", port: int = 8080) -> None:
    """Create and run the trust HTTP server (blocking)."""
    server = create_server(host=host, port=port)
    logger.info("Serving cauldron-trust on http://%s:%d (Ctrl-C to stop)", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down cauldron-trust server.")
    finally:
        server.server_close()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="cauldron-trust HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="TCP port")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy database URL")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    settings = load_settings(
        host=args.host,
        port=args.port,
        database_url=args.database_url,
        log_level=args.log_level,
    )
    configure_logging(settings.log_level)
    configure_from_settings(settings)
    run_server(host=settings.host, port=settings.port)
