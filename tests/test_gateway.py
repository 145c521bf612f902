"""Tests for the request gateway's credential, retry and failure handling."""

import asyncio
import json

from van_nav.gateway import NETWORK_ERROR
from van_nav.gateway import NOT_AUTHENTICATED
from van_nav.gateway import REQUEST_FAILED
from van_nav.gateway import SESSION_EXPIRED
from van_nav.gateway import parse_body


def test_parse_body_tolerates_empty_and_non_json():
    assert parse_body("") == {}
    assert parse_body("   ") == {}
    assert parse_body("<html>oops</html>") == {}
    assert parse_body('{"ok": true}') == {"ok": True}
    assert parse_body("[1, 2]") == [1, 2]


class TestMissingCredential:
    def test_protected_call_never_reaches_network(self, client, fake_api):
        fake_api.add("GET", "/api/tools", json_body={"tools": []})

        result = asyncio.run(client.gateway.get("/api/tools"))

        assert result is None
        assert fake_api.requests == []
        assert [n.message for n in client.notices.notices] == [NOT_AUTHENTICATED]
        assert client.navigator.target == "/login"

    def test_login_path_does_not_need_credential(self, client, fake_api):
        fake_api.add("POST", "/api/login", json_body={"success": True, "message": "ok"})

        result = asyncio.run(client.gateway.post("/api/login", {"name": "admin", "password": "x"}))

        assert result == {"success": True, "message": "ok"}
        assert len(fake_api.requests) == 1
        assert "authorization" not in fake_api.requests[0].headers

    def test_check_token_path_does_not_need_credential(self, client, fake_api):
        fake_api.add("GET", "/api/check-token", json_body={"success": True})

        assert asyncio.run(client.gateway.get("/api/check-token")) == {"success": True}
        assert not client.navigator.requested


class TestHeadersAndBody:
    def test_attaches_bearer_token_and_json_body(self, client, session, fake_api):
        session.set_credential("abc123")
        fake_api.add("POST", "/api/tools", json_body={"success": True})

        asyncio.run(client.gateway.post("/api/tools", {"name": "百度", "url": "https://baidu.com"}))

        request = fake_api.requests[0]
        assert request.headers["authorization"] == "Bearer abc123"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"name": "百度", "url": "https://baidu.com"}

    def test_header_overrides_win(self, client, session, fake_api):
        session.set_credential("abc123")
        fake_api.add("GET", "/api/tools", json_body={})

        asyncio.run(client.gateway.get("/api/tools", headers={"Authorization": "Bearer other"}))

        assert fake_api.requests[0].headers["authorization"] == "Bearer other"

    def test_empty_success_body_is_empty_dict(self, client, session, fake_api):
        session.set_credential("abc123")
        fake_api.add("DELETE", "/api/tools/3", status=204)

        assert asyncio.run(client.gateway.delete("/api/tools/3")) == {}


class TestUnauthorized:
    def test_single_401_is_retried_transparently(self, client, session, fake_api, sleep):
        session.set_credential("fresh")
        fake_api.add("GET", "/api/admin/all", status=401)
        fake_api.add("GET", "/api/admin/all", json_body={"tools": []})

        result = asyncio.run(client.gateway.get("/api/admin/all"))

        assert result == {"tools": []}
        assert session.get_credential() == "fresh"
        assert sleep.delays == [0.25]
        assert client.notices.notices == []
        assert not client.navigator.requested

    def test_retry_picks_up_newly_stored_token(self, client, session, fake_api, sleep):
        session.set_credential("stale")
        fake_api.add("GET", "/api/tools", status=401)
        fake_api.add("GET", "/api/tools", json_body={"tools": []})

        async def store_new_token(delay):
            session.set_credential("new")

        client.gateway._sleep = store_new_token
        asyncio.run(client.gateway.get("/api/tools"))

        assert [r.headers["authorization"] for r in fake_api.requests] == ["Bearer stale", "Bearer new"]

    def test_two_401s_expire_the_session_once(self, client, session, fake_api):
        session.set_credential("expired")
        fake_api.add("PUT", "/api/tools/sort", status=401, json_body={"message": "token invalid"})

        result = asyncio.run(client.gateway.put("/api/tools/sort", {"ids": ["1"]}))

        assert result is None
        assert len(fake_api.requests) == 2
        assert session.get_credential() is None
        assert [n.message for n in client.notices.notices] == [SESSION_EXPIRED]
        assert client.navigator.target == "/login"
        assert client.navigator.delay == 1.5

    def test_session_probe_failure_is_quiet(self, client, session, fake_api):
        session.set_credential("expired")
        fake_api.add("GET", "/api/check-token", status=401)

        result = asyncio.run(client.gateway.get("/api/check-token"))

        assert result is None
        assert len(fake_api.requests) == 2
        assert session.get_credential() == "expired"
        assert client.notices.notices == []
        assert not client.navigator.requested

    def test_login_401_is_not_retried(self, client, fake_api, sleep):
        fake_api.add("POST", "/api/login", status=401, json_body={"message": "wrong password"})

        result = asyncio.run(client.gateway.post("/api/login", {"name": "admin", "password": "bad"}))

        assert result is None
        assert len(fake_api.requests) == 1
        assert sleep.delays == []
        assert [n.message for n in client.notices.notices] == ["wrong password"]
        assert not client.navigator.requested


class TestOtherFailures:
    def test_server_message_is_shown(self, client, session, fake_api):
        session.set_credential("abc")
        fake_api.add("POST", "/api/admin/catelog", status=400, json_body={"message": "category exists"})

        assert asyncio.run(client.gateway.post("/api/admin/catelog", {"name": "AI"})) is None
        assert [(n.level, n.message) for n in client.notices.notices] == [("error", "category exists")]

    def test_generic_message_without_server_message(self, client, session, fake_api):
        session.set_credential("abc")
        fake_api.add("GET", "/api/tools", status=500, text="Internal Server Error")

        assert asyncio.run(client.gateway.get("/api/tools")) is None
        assert [n.message for n in client.notices.notices] == [REQUEST_FAILED]
        assert session.get_credential() == "abc"

    def test_network_error_becomes_notice(self, client, session, fake_api):
        session.set_credential("abc")
        fake_api.fail("GET", "/api/tools")

        assert asyncio.run(client.gateway.get("/api/tools")) is None
        assert [n.message for n in client.notices.notices] == [NETWORK_ERROR]

    def test_silent_calls_emit_nothing(self, client, session, fake_api):
        session.set_credential("abc")
        fake_api.add("GET", "/api/tools", status=500)

        assert asyncio.run(client.gateway.get("/api/tools", silent=True)) is None
        assert client.notices.notices == []
