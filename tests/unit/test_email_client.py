"""Unit tests for the Communications Service email client."""

import json

import httpx
import pytest
from jose import jwt
from libs.common.config import get_settings
from libs.common.emails import client as client_module
from libs.common.emails.client import EmailClient


def _patch_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def _client(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(client_module.httpx, "AsyncClient", _client)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_template_posts_payload_with_service_token(monkeypatch):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        captured["headers"] = request.headers
        return httpx.Response(200, json={"success": True})

    _patch_transport(monkeypatch, handler)

    ok = await EmailClient().send_template(
        "review_invite", "choir@example.com", {"coach_name": "Alex"}
    )

    assert ok is True
    settings = get_settings()
    assert captured["url"] == f"{settings.COMMUNICATIONS_SERVICE_URL}/email/template"
    assert captured["body"] == {
        "template_type": "review_invite",
        "to_email": "choir@example.com",
        "template_data": {"coach_name": "Alex"},
    }
    assert captured["headers"]["X-Caller-Service"] == settings.SERVICE_NAME
    token = captured["headers"]["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(
        token, settings.AUTH_JWT_SECRET, algorithms=[settings.AUTH_JWT_ALGORITHM]
    )
    assert claims["role"] == "service_role"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_template_reports_server_errors(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(500, text="boom"))

    ok = await EmailClient().send_template("review_invite", "a@example.com", {})

    assert ok is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_template_swallows_connection_errors(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    _patch_transport(monkeypatch, handler)

    ok = await EmailClient().send_template("review_invite", "a@example.com", {})

    assert ok is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_template_respects_success_flag(monkeypatch):
    _patch_transport(
        monkeypatch, lambda request: httpx.Response(200, json={"success": False})
    )

    sent = await EmailClient().send_template("review_invite", "a@example.com", {})
    assert sent is False


@pytest.mark.unit
def test_get_email_client_is_a_singleton(monkeypatch):
    monkeypatch.setattr(client_module, "_email_client", None)

    first = client_module.get_email_client()

    assert client_module.get_email_client() is first
