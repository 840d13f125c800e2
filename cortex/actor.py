"""
Persisted graph actor.

Single authoritative owner of one knowledge graph and one session table
per tenant. Every public method runs under the actor lock, so calls on one
instance never interleave. Nothing stops two clients from overwriting each
other's snapshots: replace_graph is last-write-wins with no version check.

Load lifecycle:
  NOT_LOADED → LOADING → LOADED

The first call after construction reads both records from storage, seeding
and persisting a default graph when none exists. A failed load returns to
NOT_LOADED so the next call tries again.
"""
import dataclasses
import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Callable, Dict, List, Optional

from .exceptions import StorageError
from .schema import KnowledgeGraph, Session
from .seed import seed
from .storage import ActorStorage

logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"
GRAPH_KEY = "knowledgeGraph"


class ActorLoadState(Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def default_session_title(created_ms: int) -> str:
    created = datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc)
    return f"Chat {created.month}/{created.day}/{created.year}"


def actor_method(f):
    """Decorator: serialize on the actor lock and make sure state is loaded."""
    @wraps(f)
    def decorated(self, *args, **kwargs):
        with self.lock:
            self._ensure_loaded()
            return f(self, *args, **kwargs)
    return decorated


class PersistedGraphActor:
    """Owns the canonical graph and session table for one actor id."""

    def __init__(self, storage: ActorStorage, clock: Callable[[], int] = now_ms):
        self.storage = storage
        self.clock = clock
        self.lock = threading.RLock()
        self.load_state = ActorLoadState.NOT_LOADED
        self._graph: Optional[KnowledgeGraph] = None
        self._sessions: Dict[str, Session] = {}

    @property
    def actor_id(self) -> str:
        return self.storage.actor_id

    # ──────────────────────────────────────────
    # Load / persist
    # ──────────────────────────────────────────

    def _ensure_loaded(self) -> None:
        """Drive the load state machine to LOADED. Caller must hold lock."""
        if self.load_state is ActorLoadState.LOADED:
            return

        self.load_state = ActorLoadState.LOADING
        try:
            records = self.storage.get_many([SESSIONS_KEY, GRAPH_KEY])

            stored_sessions = records[SESSIONS_KEY] or {}
            try:
                sessions = {
                    sid: Session.from_dict(data) for sid, data in stored_sessions.items()
                }
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise StorageError(
                    f"Stored sessions for actor {self.actor_id} are unreadable: {e!r}"
                ) from e

            stored_graph = records[GRAPH_KEY]
            graph = None
            if stored_graph is not None:
                try:
                    graph = KnowledgeGraph.from_dict(stored_graph)
                except ValueError as e:
                    raise StorageError(
                        f"Stored graph for actor {self.actor_id} is unreadable: {e}"
                    ) from e

            self._sessions = sessions
            if graph is None:
                logger.info(f"No stored graph for actor {self.actor_id}, seeding defaults")
                self._graph = seed()
                self._persist_graph()
            else:
                self._graph = graph
        except Exception:
            self.load_state = ActorLoadState.NOT_LOADED
            raise

        self.load_state = ActorLoadState.LOADED
        logger.info(
            f"Actor {self.actor_id} loaded: {len(self._graph.nodes)} nodes, "
            f"{len(self._graph.links)} links, {len(self._sessions)} sessions"
        )

    def _persist_graph(self) -> None:
        self.storage.put(GRAPH_KEY, self._graph.to_dict())

    def _persist_sessions(self) -> None:
        self.storage.put(
            SESSIONS_KEY, {sid: s.to_dict() for sid, s in self._sessions.items()}
        )

    # ──────────────────────────────────────────
    # Knowledge graph
    # ──────────────────────────────────────────

    @actor_method
    def get_graph(self) -> KnowledgeGraph:
        """Return a copy of the current graph."""
        return self._graph.copy()

    @actor_method
    def replace_graph(self, graph: KnowledgeGraph) -> None:
        """Overwrite the graph in memory and in storage. Last write wins."""
        self._graph = graph.copy()
        self._persist_graph()
        logger.info(
            f"Actor {self.actor_id} graph replaced: {len(graph.nodes)} nodes, {len(graph.links)} links"
        )

    @actor_method
    def reset_graph(self) -> KnowledgeGraph:
        """Discard all edits and return the freshly seeded graph."""
        return self.seed()

    def seed(self) -> KnowledgeGraph:
        """Replace the graph with the default data and persist it."""
        with self.lock:
            self._graph = seed()
            self._persist_graph()
            logger.info(f"Actor {self.actor_id} seeded with {len(self._graph.nodes)} nodes")
            return self._graph.copy()

    # ──────────────────────────────────────────
    # Sessions
    # ──────────────────────────────────────────

    @actor_method
    def add_session(self, session_id: str, title: Optional[str] = None) -> Session:
        now = self.clock()
        session = Session(
            id=session_id,
            title=title or default_session_title(now),
            created_at=now,
            last_active=now,
        )
        self._sessions[session_id] = session
        self._persist_sessions()
        return dataclasses.replace(session)

    @actor_method
    def remove_session(self, session_id: str) -> bool:
        deleted = self._sessions.pop(session_id, None) is not None
        if deleted:
            self._persist_sessions()
        return deleted

    @actor_method
    def update_session_activity(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session:
            session.last_active = self.clock()
            self._persist_sessions()

    @actor_method
    def update_session_title(self, session_id: str, title: str) -> bool:
        session = self._sessions.get(session_id)
        if not session:
            return False
        session.title = title
        self._persist_sessions()
        return True

    @actor_method
    def list_sessions(self) -> List[Session]:
        """All sessions, most recently active first."""
        ordered = sorted(self._sessions.values(), key=lambda s: s.last_active, reverse=True)
        return [dataclasses.replace(s) for s in ordered]

    @actor_method
    def get_session(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return dataclasses.replace(session) if session else None

    @actor_method
    def get_session_count(self) -> int:
        return len(self._sessions)

    @actor_method
    def clear_all_sessions(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        self._persist_sessions()
        return count
