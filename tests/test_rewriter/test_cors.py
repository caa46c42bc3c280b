"""Tests for gatewayspec.rewriter.cors."""

from __future__ import annotations

import yaml

from gatewayspec.models import CorsDefaults
from gatewayspec.rewriter.cors import ensure_preflight, has_preflight, preflight_operation
from gatewayspec.rewriter.integration import INTEGRATION_KEY

_PARAM = "method.response.header."


def _params(operation: dict) -> dict:
    return operation[INTEGRATION_KEY]["responses"]["default"]["responseParameters"]


class TestHasPreflight:

    def test_lowercase(self) -> None:
        assert has_preflight({"get": {}, "options": {}})

    def test_any_case(self) -> None:
        assert has_preflight({"OPTIONS": {}})

    def test_absent(self) -> None:
        assert not has_preflight({"get": {}, "parameters": []})


class TestPreflightOperation:
    """Shape of the synthesized mock operation."""

    def test_defaults(self) -> None:
        operation = preflight_operation(CorsDefaults())
        params = _params(operation)
        assert params[_PARAM + "Access-Control-Allow-Origin"] == "'*'"
        assert params[_PARAM + "Access-Control-Allow-Methods"] == "'GET,POST,OPTIONS,DELETE'"
        assert params[_PARAM + "Access-Control-Allow-Credentials"] == "'false'"
        assert params[_PARAM + "Vary"] == "'Origin'"
        assert params[_PARAM + "Access-Control-Allow-Headers"] == (
            "'Content-Type,X-Amz-Date,Authorization,X-Api-Key,"
            "X-Amz-Security-Token,X-Amz-User-Agent'"
        )

    def test_mock_integration(self) -> None:
        integration = preflight_operation(CorsDefaults())[INTEGRATION_KEY]
        assert integration["type"] == "mock"
        assert integration["passthroughBehavior"] == "when_no_match"
        assert integration["requestTemplates"] == {"application/json": '{"statusCode": 204}'}
        assert integration["responses"]["default"]["statusCode"] == "204"

    def test_declares_response_headers(self) -> None:
        response = preflight_operation(CorsDefaults())["responses"]["204"]
        assert set(response["headers"]) == {
            "Access-Control-Allow-Origin",
            "Access-Control-Allow-Methods",
            "Access-Control-Allow-Credentials",
            "Vary",
            "Access-Control-Allow-Headers",
        }

    def test_origins_and_methods_joined(self) -> None:
        cors = CorsDefaults(
            allow_origins=("https://a.example", "https://b.example", "https://a.example"),
            allow_methods=("GET", "PUT"),
            allow_credentials=True,
        )
        params = _params(preflight_operation(cors))
        assert params[_PARAM + "Access-Control-Allow-Origin"] == (
            "'https://a.example,https://b.example'"
        )
        assert params[_PARAM + "Access-Control-Allow-Methods"] == "'GET,PUT'"
        assert params[_PARAM + "Access-Control-Allow-Credentials"] == "'true'"

    def test_allow_headers_stay_canonical(self) -> None:
        params = _params(preflight_operation(CorsDefaults(allow_headers=("X-Custom",))))
        assert "X-Custom" not in params[_PARAM + "Access-Control-Allow-Headers"]

    def test_yaml_output_has_no_anchors(self) -> None:
        dumped = yaml.safe_dump(preflight_operation(CorsDefaults()))
        assert "&id" not in dumped


class TestEnsurePreflight:

    def test_adds_when_absent(self) -> None:
        item = {"get": {}}
        assert ensure_preflight(item, CorsDefaults()) is True
        assert list(item) == ["get", "options"]

    def test_keeps_existing(self) -> None:
        existing = {"responses": {"200": {"description": "mine"}}}
        item = {"get": {}, "Options": existing}
        assert ensure_preflight(item, CorsDefaults()) is False
        assert item == {"get": {}, "Options": existing}
