#!/usr/bin/env python3
"""
Cortex Graph Server
-------------------
JSON API over the persisted graph actors, one actor per tenant, all backed
by a single SQLite file.

Usage:
    python cortex_server.py
    python cortex_server.py --port 8787 --db /tmp/cortex.db

API:
    GET    /api/graph                   → { success, data: graph }
    POST   /api/graph                   → body: graph. Returns { success }
    POST   /api/graph/reset             → { success, data: seeded graph }
    GET    /api/graph/stats             → { success, data: stats }
    GET    /api/graph/validate          → { success, data: { danglingLinks } }
    GET    /api/sessions                → { success, data: [session] }
    POST   /api/sessions                → body: { sessionId?, title? }
    GET    /api/sessions/<id>           → { success, data: session }
    PUT    /api/sessions/<id>/title     → body: { title }
    POST   /api/sessions/<id>/activity
    DELETE /api/sessions/<id>
    DELETE /api/sessions                → { success, data: { deleted } }
    GET    /health

Tenant is selected with the X-Tenant-Id header (default "default").
Write routes require X-API-Key when CORTEX_API_SECRET is set.
"""

import argparse
import hmac
import logging
import os
import sys
import threading
import uuid
from functools import wraps
from typing import Dict

from flask import Flask, jsonify, request

from cortex.actor import PersistedGraphActor
from cortex.config import CortexConfig
from cortex.exceptions import StorageError
from cortex.schema import KnowledgeGraph
from cortex.stats import graph_stats
from cortex.storage import ActorStorage
from cortex.validation import find_dangling_links

logger = logging.getLogger(__name__)

app = Flask(__name__)

DEFAULT_TENANT = "default"

# ── Actor registry ───────────────────────────────────────────────────────────

_actors: Dict[str, PersistedGraphActor] = {}
_actors_lock = threading.Lock()


def get_config() -> CortexConfig:
    cfg = app.config.get("CORTEX")
    if cfg is None:
        cfg = CortexConfig.load(os.environ.get("CORTEX_CONFIG"))
        app.config["CORTEX"] = cfg
    return cfg


def configure(cfg: CortexConfig) -> None:
    """Install a config and drop any actors built from the previous one."""
    with _actors_lock:
        app.config["CORTEX"] = cfg
        _actors.clear()


def get_actor(tenant: str) -> PersistedGraphActor:
    """Return the actor for a tenant, creating it on first use."""
    with _actors_lock:
        actor = _actors.get(tenant)
        if actor is None:
            storage = ActorStorage(tenant, get_config().db_path)
            actor = PersistedGraphActor(storage)
            _actors[tenant] = actor
        return actor


def current_actor() -> PersistedGraphActor:
    tenant = request.headers.get("X-Tenant-Id", "").strip() or DEFAULT_TENANT
    return get_actor(tenant)


# ── Auth ─────────────────────────────────────────────────────────────────────


def require_api_key(f):
    """Decorator: when a secret is configured, reject requests without a valid X-API-Key."""
    @wraps(f)
    def decorated(*args, **kwargs):
        secret = get_config().api_secret
        if not secret:
            return f(*args, **kwargs)
        provided = request.headers.get("X-API-Key", "").strip()
        if not hmac.compare_digest(provided, secret):
            code = 401 if not provided else 403
            return fail("Unauthorized", code)
        return f(*args, **kwargs)
    return decorated


# ── Responses ────────────────────────────────────────────────────────────────


def ok(data=None, code: int = 200):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    return jsonify(body), code


def fail(error: str, code: int):
    return jsonify({"success": False, "error": error}), code


@app.errorhandler(StorageError)
def handle_storage_error(e):
    logger.error(f"Storage failure: {e}", exc_info=True)
    return fail(str(e), 500)


# ── Graph routes ─────────────────────────────────────────────────────────────


@app.route("/api/graph", methods=["GET"])
def api_get_graph():
    graph = current_actor().get_graph()
    return ok(graph.to_dict())


@app.route("/api/graph", methods=["POST"])
@require_api_key
def api_replace_graph():
    data = request.get_json(force=True, silent=True)
    if data is None:
        return fail("request body must be a JSON graph", 400)
    try:
        graph = KnowledgeGraph.from_dict(data)
    except ValueError as e:
        return fail(str(e), 400)
    current_actor().replace_graph(graph)
    return ok()


@app.route("/api/graph/reset", methods=["POST"])
@require_api_key
def api_reset_graph():
    graph = current_actor().reset_graph()
    return ok(graph.to_dict())


@app.route("/api/graph/stats")
def api_graph_stats():
    return ok(graph_stats(current_actor().get_graph()))


@app.route("/api/graph/validate")
def api_validate_graph():
    dangling = find_dangling_links(current_actor().get_graph())
    return ok({"danglingLinks": [l.to_dict() for l in dangling]})


# ── Session routes ───────────────────────────────────────────────────────────


@app.route("/api/sessions", methods=["GET"])
def api_list_sessions():
    return ok([s.to_dict() for s in current_actor().list_sessions()])


@app.route("/api/sessions", methods=["POST"])
@require_api_key
def api_add_session():
    data = request.get_json(force=True, silent=True) or {}
    session_id = (data.get("sessionId") or "").strip() or str(uuid.uuid4())
    session = current_actor().add_session(session_id, data.get("title"))
    return ok(session.to_dict(), 201)


@app.route("/api/sessions", methods=["DELETE"])
@require_api_key
def api_clear_sessions():
    return ok({"deleted": current_actor().clear_all_sessions()})


@app.route("/api/sessions/<session_id>", methods=["GET"])
def api_get_session(session_id):
    session = current_actor().get_session(session_id)
    if not session:
        return fail("Session not found", 404)
    return ok(session.to_dict())


@app.route("/api/sessions/<session_id>", methods=["DELETE"])
@require_api_key
def api_remove_session(session_id):
    if not current_actor().remove_session(session_id):
        return fail("Session not found", 404)
    return ok()


@app.route("/api/sessions/<session_id>/title", methods=["PUT"])
@require_api_key
def api_update_session_title(session_id):
    data = request.get_json(force=True, silent=True) or {}
    title = (data.get("title") or "").strip()
    if not title:
        return fail("title is required", 400)
    if not current_actor().update_session_title(session_id, title):
        return fail("Session not found", 404)
    return ok()


@app.route("/api/sessions/<session_id>/activity", methods=["POST"])
@require_api_key
def api_touch_session(session_id):
    current_actor().update_session_activity(session_id)
    return ok()


@app.route("/health")
def health():
    with _actors_lock:
        loaded = len(_actors)
    return jsonify({"status": "ok", "db": get_config().db_path, "actors": loaded})


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cortex Graph Server")
    parser.add_argument("--config", help="Path to cortex.yaml")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to cortex.db (overrides CORTEX_DB env var)")
    args = parser.parse_args()

    cfg = CortexConfig.load(args.config)
    if args.db:
        cfg.db_path = args.db
        cfg.resolve_paths()
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    configure(cfg)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [cortex] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info(f"Starting on http://{cfg.host}:{cfg.port} (db: {cfg.db_path})")

    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=True)
