"""
External integration probes.

The AI-completion, transactional-email and authentication services are
opaque request/response boundaries. Checks depend only on the protocols
below; the HTTP implementations are thin ``requests`` clients configured
from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import requests

from ..exceptions import ConfigurationError, DataAccessError

logger = logging.getLogger(__name__)


@dataclass
class CompletionResponse:
    text: str
    confidence: Optional[float] = None
    rejected: bool = False  # rate limited or refused by a cost control
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EmailResponse:
    message_id: Optional[str] = None
    status: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_service_id(self) -> bool:
        return bool(self.message_id)


@dataclass
class SessionInfo:
    session_id: str
    user_id: Optional[str] = None
    expires_at: Optional[str] = None


@runtime_checkable
class CompletionProbe(Protocol):
    def complete(self, prompt: str, context: Optional[str] = None) -> CompletionResponse:
        ...


@runtime_checkable
class EmailProbe(Protocol):
    def send(self, recipient: str, subject: str, payload: Mapping[str, Any]) -> EmailResponse:
        ...


@runtime_checkable
class SessionProbe(Protocol):
    def authenticate(self) -> SessionInfo:
        ...

    def refresh(self, session: SessionInfo) -> SessionInfo:
        ...

    def revoke(self, session: SessionInfo) -> None:
        ...

    def is_valid(self, session: SessionInfo) -> bool:
        ...


class _HttpClient:
    """Shared POST helper that maps transport failures to DataAccessError."""

    def __init__(self, name: str, base_url: str, api_key: Optional[str], timeout: float):
        if not base_url:
            raise ConfigurationError(f"{name} endpoint is not configured", integration=name)
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def post(self, path: str, payload: Mapping[str, Any]) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url
        try:
            return self.session.post(url, json=dict(payload), timeout=self.timeout)
        except requests.Timeout as e:
            raise DataAccessError(f"{self.name} request timed out", original_exception=e) from e
        except requests.RequestException as e:
            raise DataAccessError(f"{self.name} request failed: {e}", original_exception=e) from e

    def json_or_error(self, response: requests.Response) -> Dict[str, Any]:
        if response.status_code in (401, 403):
            raise ConfigurationError(
                f"{self.name} rejected credentials (HTTP {response.status_code})",
                integration=self.name,
            )
        if not response.ok:
            raise DataAccessError(f"{self.name} returned HTTP {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as e:
            raise DataAccessError(f"{self.name} returned a non-JSON body", original_exception=e) from e


class HttpCompletionProbe:
    """POSTs ``{"prompt", "context"}`` and reads ``text`` (or ``response``) back."""

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 15.0):
        self._client = _HttpClient("ai-completion", base_url, api_key, timeout)

    def complete(self, prompt: str, context: Optional[str] = None) -> CompletionResponse:
        response = self._client.post("", {"prompt": prompt, "context": context})
        if response.status_code == 429:
            return CompletionResponse(text="", rejected=True)
        body = self._client.json_or_error(response)
        return CompletionResponse(
            text=str(body.get("text") or body.get("response") or ""),
            confidence=body.get("confidence"),
            raw=body,
        )


class HttpEmailProbe:
    """POSTs ``{"to", "subject", "payload"}``; the service id comes back as ``id`` or ``message_id``."""

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 5.0):
        self._client = _HttpClient("email", base_url, api_key, timeout)

    def send(self, recipient: str, subject: str, payload: Mapping[str, Any]) -> EmailResponse:
        body = self._client.json_or_error(
            self._client.post("", {"to": recipient, "subject": subject, "payload": dict(payload)})
        )
        return EmailResponse(
            message_id=body.get("id") or body.get("message_id"),
            status=body.get("status"),
            raw=body,
        )


class HttpSessionProbe:
    """Password-grant session checks against an auth service."""

    def __init__(self, base_url: str, email: str, password: str, api_key: Optional[str] = None, timeout: float = 3.0):
        if not email or not password:
            raise ConfigurationError("auth probe credentials are not configured", integration="auth")
        self._client = _HttpClient("auth", base_url, api_key, timeout)
        self._email = email
        self._password = password

    def _session(self, body: Dict[str, Any]) -> SessionInfo:
        token = body.get("access_token") or body.get("session_id")
        if not token:
            raise DataAccessError("auth response did not include a session token")
        user = body.get("user") or {}
        return SessionInfo(
            session_id=str(token),
            user_id=user.get("id") if isinstance(user, dict) else None,
            expires_at=body.get("expires_at"),
        )

    def authenticate(self) -> SessionInfo:
        return self._session(self._client.json_or_error(
            self._client.post("token", {"email": self._email, "password": self._password})
        ))

    def refresh(self, session: SessionInfo) -> SessionInfo:
        return self._session(self._client.json_or_error(
            self._client.post("refresh", {"session_id": session.session_id})
        ))

    def revoke(self, session: SessionInfo) -> None:
        self._client.json_or_error(self._client.post("logout", {"session_id": session.session_id}))

    def is_valid(self, session: SessionInfo) -> bool:
        response = self._client.post("user", {"session_id": session.session_id})
        return response.ok


@dataclass
class ProbeSet:
    """External probes available to a batch; None means not configured."""
    completion: Optional[CompletionProbe] = None
    email: Optional[EmailProbe] = None
    session: Optional[SessionProbe] = None


def probes_from_env(env: Optional[Mapping[str, str]] = None) -> ProbeSet:
    """Build HTTP probes from ``RESILIENCE_*`` environment variables.

    Variables: RESILIENCE_AI_URL / RESILIENCE_AI_KEY,
    RESILIENCE_EMAIL_URL / RESILIENCE_EMAIL_KEY,
    RESILIENCE_AUTH_URL / RESILIENCE_AUTH_KEY / RESILIENCE_AUTH_EMAIL /
    RESILIENCE_AUTH_PASSWORD. Unset integrations stay None.
    """
    env = env if env is not None else os.environ
    probes = ProbeSet()
    if env.get("RESILIENCE_AI_URL"):
        probes.completion = HttpCompletionProbe(env["RESILIENCE_AI_URL"], env.get("RESILIENCE_AI_KEY"))
    if env.get("RESILIENCE_EMAIL_URL"):
        probes.email = HttpEmailProbe(env["RESILIENCE_EMAIL_URL"], env.get("RESILIENCE_EMAIL_KEY"))
    if env.get("RESILIENCE_AUTH_URL"):
        try:
            probes.session = HttpSessionProbe(
                env["RESILIENCE_AUTH_URL"],
                env.get("RESILIENCE_AUTH_EMAIL", ""),
                env.get("RESILIENCE_AUTH_PASSWORD", ""),
                env.get("RESILIENCE_AUTH_KEY"),
            )
        except ConfigurationError as e:
            logger.warning(f"Auth probe disabled: {e.message}")
    configured = [name for name, probe in vars(probes).items() if probe is not None]
    logger.info(f"External probes configured: {configured or 'none'}")
    return probes
