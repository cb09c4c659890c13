"""Tests for HTTP probes and environment-driven probe wiring."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from resilience_orchestrator.exceptions import ConfigurationError, DataAccessError
from resilience_orchestrator.integrations import (
    HttpCompletionProbe,
    HttpEmailProbe,
    HttpSessionProbe,
    probes_from_env,
)
from resilience_orchestrator.integrations.probes import SessionInfo


def _response(status_code=200, body=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = str(body)
    response.json.return_value = body if body is not None else {}
    return response


class TestProbesFromEnv:
    def test_nothing_configured(self):
        probes = probes_from_env({})
        assert probes.completion is None
        assert probes.email is None
        assert probes.session is None

    def test_all_configured(self):
        probes = probes_from_env({
            "RESILIENCE_AI_URL": "https://ai.example.com/chat",
            "RESILIENCE_AI_KEY": "k1",
            "RESILIENCE_EMAIL_URL": "https://mail.example.com/send",
            "RESILIENCE_AUTH_URL": "https://auth.example.com",
            "RESILIENCE_AUTH_EMAIL": "probe@example.com",
            "RESILIENCE_AUTH_PASSWORD": "secret",
        })
        assert isinstance(probes.completion, HttpCompletionProbe)
        assert isinstance(probes.email, HttpEmailProbe)
        assert isinstance(probes.session, HttpSessionProbe)

    def test_auth_without_credentials_is_left_unset(self):
        probes = probes_from_env({"RESILIENCE_AUTH_URL": "https://auth.example.com"})
        assert probes.session is None


class TestHttpCompletionProbe:
    def test_reads_text_and_sends_bearer(self):
        probe = HttpCompletionProbe("https://ai.example.com/chat", api_key="k1")
        with patch.object(requests.Session, "post", return_value=_response(body={"response": "OSFI E-21", "confidence": 0.8})) as post:
            result = probe.complete("What is E-21?", context="osfi")

        assert result.text == "OSFI E-21"
        assert result.confidence == 0.8
        assert result.rejected is False
        assert post.call_args.kwargs["json"] == {"prompt": "What is E-21?", "context": "osfi"}
        assert probe._client.session.headers["Authorization"] == "Bearer k1"

    def test_429_is_rejection(self):
        probe = HttpCompletionProbe("https://ai.example.com/chat")
        with patch.object(requests.Session, "post", return_value=_response(429)):
            assert probe.complete("hi").rejected is True

    def test_unauthorized_is_configuration_error(self):
        probe = HttpCompletionProbe("https://ai.example.com/chat")
        with patch.object(requests.Session, "post", return_value=_response(401)):
            with pytest.raises(ConfigurationError):
                probe.complete("hi")

    def test_transport_timeout_is_data_access_error(self):
        probe = HttpCompletionProbe("https://ai.example.com/chat")
        with patch.object(requests.Session, "post", side_effect=requests.Timeout("slow")):
            with pytest.raises(DataAccessError, match="timed out"):
                probe.complete("hi")

    def test_blank_url_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            HttpCompletionProbe("")


class TestHttpEmailProbe:
    def test_message_id_from_either_key(self):
        probe = HttpEmailProbe("https://mail.example.com/send")
        with patch.object(requests.Session, "post", return_value=_response(body={"id": "m-1", "status": "queued"})):
            assert probe.send("a@example.com", "Test", {}).message_id == "m-1"
        with patch.object(requests.Session, "post", return_value=_response(body={"status": "queued"})):
            assert probe.send("a@example.com", "Test", {}).has_service_id is False

    def test_server_error(self):
        probe = HttpEmailProbe("https://mail.example.com/send")
        with patch.object(requests.Session, "post", return_value=_response(500, {"error": "down"})):
            with pytest.raises(DataAccessError, match="HTTP 500"):
                probe.send("a@example.com", "Test", {})


class TestHttpSessionProbe:
    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            HttpSessionProbe("https://auth.example.com", "", "")

    def test_authenticate_and_validate(self):
        probe = HttpSessionProbe("https://auth.example.com", "probe@example.com", "secret")
        body = {"access_token": "tok-1", "user": {"id": "u-1"}, "expires_at": "2026-12-31T00:00:00Z"}
        with patch.object(requests.Session, "post", return_value=_response(body=body)) as post:
            session = probe.authenticate()
        assert session == SessionInfo(session_id="tok-1", user_id="u-1", expires_at="2026-12-31T00:00:00Z")
        assert post.call_args.args[0] == "https://auth.example.com/token"

        with patch.object(requests.Session, "post", return_value=_response(401)):
            assert probe.is_valid(session) is False

    def test_missing_token(self):
        probe = HttpSessionProbe("https://auth.example.com", "probe@example.com", "secret")
        with patch.object(requests.Session, "post", return_value=_response(body={"user": {}})):
            with pytest.raises(DataAccessError, match="session token"):
                probe.authenticate()
