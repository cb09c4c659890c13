"""In-process fakes for the external probe protocols."""

import threading
import time
import uuid
from typing import Any, Dict, Mapping, Optional, Set

import pytest

from resilience_orchestrator.integrations import ProbeSet
from resilience_orchestrator.integrations.probes import CompletionResponse, EmailResponse, SessionInfo

DOMAIN_TEXT = (
    "OSFI Guideline E-21 expects institutions to manage operational risk through "
    "a documented framework, clear accountability and tested continuity plans."
)


class FakeCompletionProbe:
    """Returns ``text``; rejects a prompt once it has been sent ``limit`` times."""

    def __init__(
        self,
        text: str = DOMAIN_TEXT,
        delay: float = 0.0,
        limit: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        self.text = text
        self.delay = delay
        self.limit = limit
        self.error = error
        self.calls = 0
        self._per_prompt: Dict[str, int] = {}
        self._lock = threading.Lock()

    def complete(self, prompt: str, context: Optional[str] = None) -> CompletionResponse:
        with self._lock:
            self.calls += 1
            self._per_prompt[prompt] = self._per_prompt.get(prompt, 0) + 1
            repeat = self._per_prompt[prompt]
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.limit is not None and repeat > self.limit:
            return CompletionResponse(text="", rejected=True)
        return CompletionResponse(text=self.text, confidence=0.9)


class FakeEmailProbe:
    def __init__(self, with_message_id: bool = True, delay: float = 0.0):
        self.with_message_id = with_message_id
        self.delay = delay
        self.sent = []

    def send(self, recipient: str, subject: str, payload: Mapping[str, Any]) -> EmailResponse:
        if self.delay:
            time.sleep(self.delay)
        self.sent.append((recipient, subject, dict(payload)))
        message_id = f"msg-{uuid.uuid4().hex[:8]}" if self.with_message_id else None
        return EmailResponse(message_id=message_id, status="queued")


class FakeSessionProbe:
    """Tracks live sessions so tests can assert every session was revoked."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.live: Set[str] = set()
        self.revoked: Set[str] = set()
        self._lock = threading.Lock()

    def authenticate(self) -> SessionInfo:
        if self.delay:
            time.sleep(self.delay)
        session = SessionInfo(session_id=uuid.uuid4().hex, user_id="risk.officer")
        with self._lock:
            self.live.add(session.session_id)
        return session

    def refresh(self, session: SessionInfo) -> SessionInfo:
        with self._lock:
            self.live.discard(session.session_id)
        return self.authenticate()

    def revoke(self, session: SessionInfo) -> None:
        with self._lock:
            self.live.discard(session.session_id)
            self.revoked.add(session.session_id)

    def is_valid(self, session: SessionInfo) -> bool:
        with self._lock:
            return session.session_id in self.live


@pytest.fixture
def all_probes() -> ProbeSet:
    """Every integration configured with well-behaved fakes."""
    return ProbeSet(
        completion=FakeCompletionProbe(limit=10),
        email=FakeEmailProbe(),
        session=FakeSessionProbe(),
    )
