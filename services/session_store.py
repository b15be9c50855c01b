"""Expiring in-memory store for label analysis sessions."""

from __future__ import annotations

import logging
import os
import time
from copy import deepcopy
from threading import Lock
from typing import Any, Callable, Dict
from uuid import uuid4

from models.session_models import SessionRecord

LOGGER = logging.getLogger(__name__)
DEFAULT_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "900"))


class SessionNotFoundError(KeyError):
	"""Raised when a session id was never issued or has expired."""


class SessionStore:
	"""Map opaque session ids to stored analyses with a fixed time-to-live.

	Records are evicted lazily on read and in bulk by `purge_expired`, which the
	background sweeper calls periodically. All access goes through one lock so
	concurrent requests never observe a half-evicted record.
	"""

	def __init__(
		self,
		ttl_seconds: float = DEFAULT_TTL_SECONDS,
		*,
		clock: Callable[[], float] = time.monotonic,
		sliding: bool = False,
	) -> None:
		if ttl_seconds <= 0:
			raise ValueError("ttl_seconds must be positive.")
		self.ttl_seconds = ttl_seconds
		self.sliding = sliding
		self._clock = clock
		self._sessions: Dict[str, SessionRecord] = {}
		self._lock = Lock()

	def create(self, payload: Any) -> str:
		"""Store a copy of the payload under a fresh id and return the id."""
		with self._lock:
			session_id = uuid4().hex
			while session_id in self._sessions:
				session_id = uuid4().hex
			self._sessions[session_id] = SessionRecord(
				session_id=session_id,
				analysis=deepcopy(payload),
				expires_at=self._clock() + self.ttl_seconds,
			)
		LOGGER.info("Session %s created (ttl=%ss)", session_id, self.ttl_seconds)
		return session_id

	def get(self, session_id: str) -> Any:
		"""Return a copy of the stored payload or raise SessionNotFoundError."""
		with self._lock:
			record = self._live_record(session_id)
			if self.sliding:
				record.expires_at = self._clock() + self.ttl_seconds
			return deepcopy(record.analysis)

	def exists(self, session_id: str) -> bool:
		"""Return True when the id resolves to a live session."""
		with self._lock:
			try:
				self._live_record(session_id)
			except SessionNotFoundError:
				return False
			return True

	def purge_expired(self) -> int:
		"""Evict every expired record and return how many were removed."""
		with self._lock:
			now = self._clock()
			expired = [key for key, record in self._sessions.items() if record.expires_at <= now]
			for key in expired:
				del self._sessions[key]
		if expired:
			LOGGER.info("Purged %d expired session(s)", len(expired))
		return len(expired)

	def __len__(self) -> int:
		with self._lock:
			now = self._clock()
			return sum(1 for record in self._sessions.values() if record.expires_at > now)

	def _live_record(self, session_id: str) -> SessionRecord:
		# Caller must hold the lock.
		record = self._sessions.get(session_id) if session_id else None
		if record is None:
			raise SessionNotFoundError(f"Session {session_id} not found")
		if record.expires_at <= self._clock():
			del self._sessions[session_id]
			LOGGER.debug("Session %s expired after %.0fs", session_id, time.time() - record.created_at)
			raise SessionNotFoundError(f"Session {session_id} expired")
		return record
