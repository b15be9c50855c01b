"""Session domain models for label conversations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SessionRecord:
	"""In-memory record holding one completed label analysis.

	Expiry is driven by `expires_at` on the store's monotonic clock;
	`created_at` is wall-clock time kept for logging only.
	"""

	session_id: str
	analysis: Any
	expires_at: float
	created_at: float = field(default_factory=lambda: time.time())
