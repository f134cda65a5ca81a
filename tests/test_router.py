"""Tests for prefix route resolution."""

import pytest

from src.config import DEFAULT_ROUTES
from src.proxy.config import RouteTable
from src.proxy.router import PrefixRouter


@pytest.fixture
def router():
    """Router over the built-in route table."""
    return PrefixRouter(RouteTable())


class TestResolve:
    """Tests for PrefixRouter.resolve."""

    def test_openai_chat_completions(self, router):
        assert (
            router.resolve("/openai/v1/chat/completions")
            == "https://api.openai.com/v1/chat/completions"
        )

    def test_prefix_alone_resolves_to_base_url(self, router):
        """No second segment leaves an empty remainder."""
        assert router.resolve("/discord") == "https://discord.com/api"

    def test_trailing_slash_is_kept(self, router):
        assert router.resolve("/discord/") == "https://discord.com/api/"

    def test_base_url_with_path(self, router):
        assert (
            router.resolve("/groq/v1/models")
            == "https://api.groq.com/openai/v1/models"
        )

    @pytest.mark.parametrize("prefix,base_url", sorted(DEFAULT_ROUTES.items()))
    @pytest.mark.parametrize("remainder", ["", "/", "/v1/messages", "/a/b/c.json"])
    def test_every_prefix_maps_remainder(self, router, prefix, base_url, remainder):
        assert router.resolve(prefix + remainder) == base_url + remainder

    def test_query_appended_verbatim(self, router):
        assert (
            router.resolve("/gemini/v1beta/models", "key=abc&alt=sse")
            == "https://generativelanguage.googleapis.com/v1beta/models?key=abc&alt=sse"
        )

    def test_query_on_bare_prefix(self, router):
        assert router.resolve("/discord", "a=1") == "https://discord.com/api?a=1"

    def test_empty_query_adds_no_question_mark(self, router):
        assert router.resolve("/xai/v1/chat", "") == "https://api.x.ai/v1/chat"

    def test_percent_encoding_passed_through(self, router):
        assert (
            router.resolve("/gemini/v1beta/models/gemini-pro%3AgenerateContent")
            == "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro%3AgenerateContent"
        )

    @pytest.mark.parametrize(
        "path",
        ["/unknown", "/unknown/v1", "/", "", "/Discord", "/OPENAI/v1", "/openaiv1", "/open"],
    )
    def test_unmapped_paths_do_not_resolve(self, router, path):
        assert router.resolve(path) is None

    def test_prefix_must_be_whole_segment(self, router):
        """"/openai-extra" is its own segment, not "/openai" plus a suffix."""
        assert router.resolve("/openai-extra/v1") is None


class TestExactRoutes:
    """Tests for whole-path routes."""

    def test_echo_route(self, router):
        assert router.resolve("/get") == "https://httpbin.org/get"

    def test_echo_route_with_query(self, router):
        assert router.resolve("/get", "x=1") == "https://httpbin.org/get?x=1"

    def test_echo_route_is_not_a_prefix(self, router):
        assert router.resolve("/get/more") is None

    def test_exact_route_checked_before_prefix(self):
        router = PrefixRouter(
            RouteTable(
                prefixes={"/svc": "https://prefix.example"},
                exact={"/svc": "https://exact.example/health"},
            )
        )
        assert router.resolve("/svc") == "https://exact.example/health"
        assert router.resolve("/svc/x") == "https://prefix.example/x"


class TestPrefixOf:
    """Tests for first segment extraction."""

    @pytest.mark.parametrize(
        "path,prefix",
        [
            ("/openai/v1/models", "/openai"),
            ("/openai", "/openai"),
            ("/openai/", "/openai"),
            ("/", None),
            ("", None),
            ("openai/v1", None),
        ],
    )
    def test_prefix_of(self, path, prefix):
        assert PrefixRouter.prefix_of(path) == prefix
