"""Tests for restbase.models."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from restbase.models import ClientConfig, HTTPMethod


class TestClientConfig:
    def test_valid(self) -> None:
        config = ClientConfig(base_url="https://api.example.com/v1/", timeout=1.5)
        assert config.base_url == "https://api.example.com/v1/"
        assert config.timeout == 1.5

    def test_strips_whitespace(self) -> None:
        assert ClientConfig(base_url="  http://localhost:8080/api/ ").base_url == "http://localhost:8080/api/"

    def test_timedelta(self) -> None:
        assert ClientConfig(base_url="https://a.example", timeout=timedelta(seconds=90)).timeout == 90.0

    @pytest.mark.parametrize("base_url", ["", "example.com/api", "mailto:ops@example.com"])
    def test_rejects_bad_base_url(self, base_url: str) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(base_url=base_url)

    def test_rejects_negative_timeout(self) -> None:
        with pytest.raises(ValidationError, match="timeout must be positive"):
            ClientConfig(base_url="https://a.example", timeout=-0.5)

    def test_frozen(self) -> None:
        config = ClientConfig(base_url="https://a.example")
        with pytest.raises(ValidationError):
            config.base_url = "https://b.example"  # type: ignore[misc]


class TestHTTPMethod:
    def test_values_are_wire_names(self) -> None:
        assert [m.value for m in HTTPMethod] == ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

    def test_is_str(self) -> None:
        assert HTTPMethod.PATCH == "PATCH"
