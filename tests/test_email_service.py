"""Tests for the outbound email collaborator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
import requests
from unittest.mock import MagicMock
from societyguard.config import settings
from societyguard.services import email_service
from societyguard.services.email_service import build_email_payload, send_email


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_API_KEY", "key-123")


def fake_response(status_code):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "provider says no"
    return resp


class TestBuildPayload:

    def test_shape(self):
        payload = build_email_payload("a@x.test", "Hi", "<p>x</p>", to_name="Asha")
        assert payload["to"] == [{"email": "a@x.test", "name": "Asha"}]
        assert payload["subject"] == "Hi"
        assert payload["htmlContent"] == "<p>x</p>"
        assert payload["sender"]["email"] == settings.EMAIL_FROM

    def test_without_name(self):
        assert build_email_payload("a@x.test", "Hi", "")["to"] == [{"email": "a@x.test"}]


class TestSendEmail:

    def test_no_api_key_never_calls_provider(self, monkeypatch):
        post = MagicMock()
        monkeypatch.setattr(email_service.requests, "post", post)
        assert send_email("a@x.test", "Hi", "<p/>") is False
        post.assert_not_called()

    def test_accepted(self, api_key, monkeypatch):
        post = MagicMock(return_value=fake_response(201))
        monkeypatch.setattr(email_service.requests, "post", post)
        assert send_email("a@x.test", "Hi", "<p/>") is True
        _, kwargs = post.call_args
        assert kwargs["headers"]["api-key"] == "key-123"
        assert kwargs["timeout"] == settings.EMAIL_TIMEOUT_SECONDS

    def test_rejected_status_is_false(self, api_key, monkeypatch):
        monkeypatch.setattr(email_service.requests, "post", MagicMock(return_value=fake_response(400)))
        assert send_email("a@x.test", "Hi", "<p/>") is False

    def test_network_error_is_swallowed(self, api_key, monkeypatch):
        post = MagicMock(side_effect=requests.exceptions.ConnectionError("down"))
        monkeypatch.setattr(email_service.requests, "post", post)
        assert send_email("a@x.test", "Hi", "<p/>") is False
