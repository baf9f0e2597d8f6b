"""Tests for error classification and retry metadata."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from link2vault.error_classifier import (
    ERROR_CATEGORIES,
    build_error_metadata,
    classify_error,
    is_retryable,
    suggested_action,
)
from link2vault.exceptions import LLMProcessingError, VaultClientError


def http_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.com/page")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"status {status}", request=request, response=response)


class TestClassifyError:
    def test_failed_to_fetch_is_network(self):
        assert classify_error(TypeError("Failed to fetch")) == "network"

    def test_http_404_is_page_not_found(self):
        assert classify_error(http_error(404)) == "page-not-found"

    def test_http_401_is_login_required(self):
        assert classify_error(http_error(401)) == "login-required"

    def test_unrecognized_is_unknown(self):
        assert classify_error(ValueError("the flux capacitor broke")) == "unknown"

    @pytest.mark.parametrize("status, expected", [
        (403, "login-required"),
        (410, "page-not-found"),
        (500, "page-not-found"),
        (503, "page-not-found"),
    ])
    def test_explicit_status(self, status, expected):
        assert classify_error(RuntimeError("boom"), http_status=status) == expected

    def test_status_in_message(self):
        assert classify_error("HTTP 404 Not Found") == "page-not-found"
        assert classify_error(RuntimeError("HTTP 403 Forbidden")) == "login-required"

    def test_status_beats_message_patterns(self):
        assert classify_error(RuntimeError("timed out"), http_status=404) == "page-not-found"

    def test_non_error_status_falls_through(self):
        assert classify_error(RuntimeError("request timed out"), http_status=429) == "timeout"

    def test_timeout(self):
        assert classify_error(asyncio.TimeoutError()) == "timeout"
        assert classify_error(RuntimeError("Request timed out")) == "timeout"
        request = httpx.Request("GET", "https://example.com")
        assert classify_error(httpx.ReadTimeout("slow", request=request)) == "timeout"

    def test_network(self):
        assert classify_error(ConnectionRefusedError("refused")) == "network"
        assert classify_error(RuntimeError("getaddrinfo failed: DNS lookup")) == "network"
        request = httpx.Request("GET", "https://example.com")
        assert classify_error(httpx.ConnectError("nope", request=request)) == "network"

    def test_bot_protection(self):
        assert classify_error(RuntimeError("Blocked by Cloudflare")) == "bot-protection"
        assert classify_error(RuntimeError("Please solve the CAPTCHA")) == "bot-protection"

    def test_login_required_message(self):
        assert classify_error(RuntimeError("Authentication required")) == "login-required"

    def test_extraction(self):
        assert classify_error("No markdown content returned") == "extraction"
        assert classify_error("Non-HTML content-type: application/pdf") == "extraction"

    def test_typed_llm_error(self):
        err = LLMProcessingError("Categorization result invalid: bad folder", "categorization")
        assert classify_error(err) == "llm"

    def test_llm_keywords(self):
        assert classify_error(RuntimeError("Invalid API key provided")) == "llm"

    def test_typed_vault_error(self):
        err = VaultClientError("Vault request PUT /vault/x.md returned status 500: oops", 500, "/vault/x.md")
        assert classify_error(err) == "vault"

    def test_message_override(self):
        assert classify_error(RuntimeError("x"), message="connection reset") == "network"


class TestPolicy:
    @pytest.mark.parametrize("category, retryable, action", [
        ("network", True, "retry"),
        ("timeout", True, "retry"),
        ("extraction", True, "retry"),
        ("unknown", True, "retry"),
        ("llm", True, "settings"),
        ("vault", True, "settings"),
        ("login-required", False, "open"),
        ("bot-protection", False, "open"),
        ("page-not-found", False, "skip"),
    ])
    def test_table(self, category, retryable, action):
        assert is_retryable(category) is retryable
        assert suggested_action(category) == action
        meta = build_error_metadata(category, "details", retry_count=2)
        assert meta.category == category
        assert meta.is_retryable is retryable
        assert meta.suggested_action == action
        assert meta.technical_details == "details"
        assert meta.retry_count == 2
        assert meta.user_message
        assert meta.timestamp

    def test_every_category_has_metadata(self):
        for category in ERROR_CATEGORIES:
            assert build_error_metadata(category, "").user_message

    def test_messages_are_stable(self):
        first = build_error_metadata("network", "a")
        second = build_error_metadata("network", "b")
        assert first.user_message == second.user_message

    def test_unknown_category_falls_back(self):
        meta = build_error_metadata("made-up", "x")
        assert meta.category == "unknown"
        assert meta.retry_count is None
