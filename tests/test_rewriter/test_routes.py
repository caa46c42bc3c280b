"""Tests for gatewayspec.rewriter.routes."""

from __future__ import annotations

import pytest

from gatewayspec.exceptions import UnresolvedIntegrationError
from gatewayspec.models import HTTPMethod, PassContext, RewriteConfig, RouteBinding
from gatewayspec.rewriter.routes import (
    ANY_METHOD_KEY,
    find_binding,
    iter_operations,
    normalize_path,
    operation_method,
    resolve_route,
)

LIST_FN = "arn:aws:lambda:us-east-1:111122223333:function:list-widgets"
OTHER_FN = "arn:aws:lambda:us-east-1:111122223333:function:other"
CATCH_ALL_FN = "arn:aws:lambda:us-east-1:111122223333:function:catch-all"


def _binding(path: str, method: HTTPMethod, target: str = LIST_FN) -> RouteBinding:
    return RouteBinding(resource_path=path, method=method, integration_target=target)


class TestNormalizePath:
    """Path normalisation used on both sides of a match."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/widgets", "widgets"),
            ("Widgets/", "widgets"),
            ("widgets", "widgets"),
            ("/Widgets/{Id}/", "widgets/{id}"),
            ("//widgets//", "/widgets/"),
            ("/", ""),
            ("", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected


class TestOperationMethod:
    """Path-item keys that declare operations."""

    def test_http_methods(self) -> None:
        assert operation_method("get") is HTTPMethod.GET
        assert operation_method("DELETE") is HTTPMethod.DELETE
        assert operation_method("options") is HTTPMethod.OPTIONS

    def test_any_method_extension(self) -> None:
        assert operation_method(ANY_METHOD_KEY) is HTTPMethod.ANY

    @pytest.mark.parametrize("key", ["parameters", "summary", "servers", "x-foo", "any"])
    def test_non_operation_keys(self, key: str) -> None:
        assert operation_method(key) is None


class TestIterOperations:
    """Walking the operations of one path item."""

    def test_yields_in_document_order(self) -> None:
        item = {
            "summary": "Widgets",
            "post": {"operationId": "create"},
            "parameters": [],
            "get": {"operationId": "list"},
        }
        keys = [key for key, _, _ in iter_operations(item)]
        assert keys == ["post", "get"]

    def test_skips_non_mapping_operations(self) -> None:
        item = {"get": None, "put": "broken", "post": {}}
        result = list(iter_operations(item))
        assert [(key, method) for key, method, _ in result] == [("post", HTTPMethod.POST)]

    def test_tolerates_keys_added_while_iterating(self) -> None:
        item = {"get": {}}
        for _key, _method, _op in iter_operations(item):
            item["options"] = {}
        assert "options" in item


class TestFindBinding:
    """First-match lookup among registered bindings."""

    def test_path_and_method_normalised(self) -> None:
        bindings = [_binding("Widgets/", HTTPMethod.GET)]
        assert find_binding(bindings, "/widgets", HTTPMethod.GET) is bindings[0]

    def test_method_must_match(self) -> None:
        bindings = [_binding("/widgets", HTTPMethod.GET)]
        assert find_binding(bindings, "/widgets", HTTPMethod.POST) is None

    def test_first_registration_wins(self) -> None:
        first = _binding("/widgets", HTTPMethod.GET, LIST_FN)
        second = _binding("widgets", HTTPMethod.GET, OTHER_FN)
        assert find_binding([first, second], "/widgets", HTTPMethod.GET) is first

    def test_any_binding_only_matches_any_operation(self) -> None:
        bindings = [_binding("/widgets", HTTPMethod.ANY)]
        assert find_binding(bindings, "/widgets", HTTPMethod.GET) is None
        assert find_binding(bindings, "/widgets", HTTPMethod.ANY) is bindings[0]


class TestResolveRoute:
    """Binding resolution with default fallback."""

    @pytest.fixture
    def config(self) -> RewriteConfig:
        config = RewriteConfig(context=PassContext(region="us-east-1"))
        config.register_anonymous_function("Widgets/", HTTPMethod.GET, LIST_FN)
        return config

    def test_registered_binding(self, config: RewriteConfig) -> None:
        route = resolve_route(config, "/widgets", HTTPMethod.GET)
        assert route.binding.integration_target == LIST_FN
        assert route.used_default is False

    def test_falls_back_to_default(self, config: RewriteConfig) -> None:
        config.set_default_function(CATCH_ALL_FN)
        route = resolve_route(config, "/widgets", HTTPMethod.POST)
        assert route.binding.integration_target == CATCH_ALL_FN
        assert route.used_default is True

    def test_unresolved_without_default(self, config: RewriteConfig) -> None:
        with pytest.raises(UnresolvedIntegrationError) as exc_info:
            resolve_route(config, "/widgets", HTTPMethod.POST)
        assert exc_info.value.path == "/widgets"
        assert exc_info.value.method == "POST"
        assert "POST /widgets" in str(exc_info.value)
