"""Tests for the outgoing-request header helpers."""

from __future__ import annotations

import httpx
import pytest

from restbase.client.request import bearer, set_authorization, set_user_agent


def _request(headers: list[tuple[str, str]] | None = None) -> httpx.Request:
    return httpx.Request("GET", "https://api.example.com/v1/users", headers=headers)


class TestSetAuthorization:
    def test_sets_header(self) -> None:
        request = _request()
        set_authorization(request, "Bearer xyz")
        assert request.headers["Authorization"] == "Bearer xyz"

    def test_replaces_existing_values(self) -> None:
        request = _request([("Authorization", "Basic old"), ("authorization", "Token older")])
        set_authorization(request, "Bearer new")
        assert request.headers.get_list("authorization") == ["Bearer new"]

    def test_idempotent(self) -> None:
        request = _request()
        set_authorization(request, "Bearer xyz")
        set_authorization(request, "Bearer xyz")
        assert request.headers.get_list("authorization") == ["Bearer xyz"]

    def test_value_not_validated(self) -> None:
        request = _request()
        set_authorization(request, "whatever format")
        assert request.headers["authorization"] == "whatever format"

    def test_other_headers_untouched(self) -> None:
        request = _request([("Accept", "application/json")])
        set_authorization(request, "Bearer xyz")
        assert request.headers["accept"] == "application/json"


class TestSetUserAgent:
    def test_replaces_existing_value(self) -> None:
        request = _request([("User-Agent", "python-httpx/0.27")])
        set_user_agent(request, "acme-sdk/1.0")
        assert request.headers.get_list("user-agent") == ["acme-sdk/1.0"]

    @pytest.mark.parametrize("times", [1, 2, 3])
    def test_idempotent(self, times: int) -> None:
        request = _request()
        for _ in range(times):
            set_user_agent(request, "acme-sdk/1.0")
        assert request.headers.get_list("user-agent") == ["acme-sdk/1.0"]


class TestBearer:
    def test_hook_sets_bearer_token(self) -> None:
        request = _request([("Authorization", "Basic old")])
        bearer("abc123")(request)
        assert request.headers.get_list("authorization") == ["Bearer abc123"]
