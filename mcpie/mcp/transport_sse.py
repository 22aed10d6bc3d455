"""SSE (Server-Sent Events) transport for MCP."""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

from sse_starlette.sse import EventSourceResponse

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Session:
    """An MCP session: one client connection and its SSE event queue."""

    def __init__(self, session_id: str, timeout: timedelta = DEFAULT_SESSION_TIMEOUT):
        self.session_id = session_id
        self.timeout = timeout
        self.created_at = _now()
        self.last_activity = self.created_at
        self.queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = _now()

    def is_expired(self) -> bool:
        """Check if the session has been idle longer than its timeout."""
        return _now() - self.last_activity > self.timeout

    async def send_event(self, event_type: str, data: Any) -> bool:
        """
        Queue an event for the client.

        Returns False, without raising, when the session is already closed.
        """
        if self._closed:
            logger.debug(f"Dropping '{event_type}' event for closed session {self.session_id}")
            return False
        await self.queue.put({"event": event_type, "data": data})
        return True

    def close(self) -> None:
        """Mark the session as closed and wake up the stream reader."""
        if self._closed:
            return
        self._closed = True
        self.queue.put_nowait(None)


class SessionManager:
    """Tracks the open sessions, keyed by session id."""

    def __init__(self, session_timeout: timedelta = DEFAULT_SESSION_TIMEOUT):
        self.session_timeout = session_timeout
        self._sessions: dict[str, Session] = {}
        self._cleanup_task: asyncio.Task | None = None

    def _new_session_id(self) -> str:
        while True:
            session_id = str(uuid.uuid4())
            if session_id not in self._sessions:
                return session_id

    def create_session(self) -> Session:
        """Open a new session with an id unique among the open sessions."""
        session = Session(self._new_session_id(), timeout=self.session_timeout)
        self._sessions[session.session_id] = session
        logger.info(f"Created session: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get an open session by ID."""
        session = self._sessions.get(session_id)
        if session is not None:
            if session.is_expired():
                self.remove_session(session_id)
                return None
            session.touch()
        return session

    def remove_session(self, session_id: str) -> None:
        """Close a session and drop it from the active map."""
        session = self._sessions.pop(session_id, None)
        if session:
            session.close()
            logger.info(f"Removed session: {session_id}")

    async def deliver(self, session_id: str, event_type: str, data: Any) -> bool:
        """
        Write an event to a session's stream.

        Results for sessions that closed in the meantime are discarded and
        False is returned.
        """
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug(f"Discarding '{event_type}' event for closed session {session_id}")
            return False
        return await session.send_event(event_type, data)

    def close_all(self) -> None:
        """Close every open session (server shutdown)."""
        for session_id in list(self._sessions):
            self.remove_session(session_id)

    async def cleanup_expired(self) -> None:
        """Remove expired sessions."""
        expired = [
            sid for sid, session in self._sessions.items() if session.is_expired()
        ]
        for sid in expired:
            self.remove_session(sid)
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")

    async def start_cleanup_task(self, interval: float = 60.0) -> None:
        """Start background task to clean up expired sessions."""
        async def cleanup_loop():
            while True:
                await asyncio.sleep(interval)
                await self.cleanup_expired()

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    def stop_cleanup_task(self) -> None:
        """Stop the cleanup background task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def session_count(self) -> int:
        """Return the number of active sessions."""
        return len(self._sessions)


async def create_sse_response(
    session: Session,
    message_endpoint: str,
    manager: SessionManager,
    keepalive: float = 30.0,
) -> EventSourceResponse:
    """Create an SSE response streaming a session's events."""

    async def event_generator() -> AsyncGenerator[dict[str, Any], None]:
        try:
            # The client learns where to post its requests from the first event
            yield {
                "event": "endpoint",
                "data": f"{message_endpoint}?session_id={session.session_id}",
            }

            while not session.closed:
                try:
                    event = await asyncio.wait_for(session.queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield {"event": "ping", "data": ""}
                    continue
                if event is None:
                    break
                yield event
        except asyncio.CancelledError:
            logger.info(f"SSE stream cancelled for session {session.session_id}")
            raise
        finally:
            manager.remove_session(session.session_id)

    return EventSourceResponse(event_generator())
