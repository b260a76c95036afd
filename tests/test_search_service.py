import asyncio

import httpx
import pytest
from conftest import FakeTypesense, make_settings

from tsproxy.common.errors import ResultParseError, UpstreamStatusError, UpstreamUnavailable
from tsproxy.proxy.search_service import SearchProxy, parse_page, parse_page_size


@pytest.mark.parametrize("raw", [None, "", "abc", "0", "-3", "1.5", " 3", "3 ", "2_0", "\u0663", "9223372036854775808"])
def test_parse_page_defaults(raw):
    assert parse_page(raw) == 1


def test_parse_page_valid():
    assert parse_page("7") == 7
    assert parse_page("+7") == 7
    assert parse_page("9223372036854775807") == 9223372036854775807


@pytest.mark.parametrize("raw", [None, "", "ten", "0", "-1", "251", "1000", "1_0", " 5"])
def test_parse_page_size_defaults(raw):
    assert parse_page_size(raw) == 10


@pytest.mark.parametrize("raw, expected", [("1", 1), ("5", 5), ("250", 250)])
def test_parse_page_size_valid(raw, expected):
    assert parse_page_size(raw) == expected


def test_build_url_with_query_by(settings, fake):
    proxy = SearchProxy(settings, fake.client(settings))
    url = proxy.build_url("tolkien", page=2, page_size=5)
    assert url == (
        "http://localhost:8108/collections/books/documents/search"
        "?q=tolkien&per_page=5&page=2&query_by=title%2Cauthor"
    )


def test_build_params_omits_query_by_when_unset(fake):
    settings = make_settings(TYPESENSE_SEARCH_BY_FIELDS="")
    proxy = SearchProxy(settings, fake.client(settings))
    assert proxy.build_params("dune", 1, 10) == [("q", "dune"), ("per_page", "10"), ("page", "1")]


def test_query_is_form_encoded(settings, fake):
    proxy = SearchProxy(settings, fake.client(settings))
    url = proxy.build_url("lord of the rings & more", 1, 10)
    assert "q=lord+of+the+rings+%26+more" in url


def test_search_parses_result(settings, fake):
    proxy = SearchProxy(settings, fake.client(settings))
    result = asyncio.run(proxy.search("tolkien", 2, 5))
    assert result.found == 1
    assert result.hits[0].document == {"title": "The Hobbit"}
    assert result.hits[0].text_match is None
    assert fake.requests[0].headers["x-typesense-api-key"] == "xyz"


def test_search_non_200_raises_with_body(settings):
    fake = FakeTypesense(status_code=404, body='{"message": "Not found."}')
    proxy = SearchProxy(settings, fake.client(settings))
    with pytest.raises(UpstreamStatusError) as exc:
        asyncio.run(proxy.search("tolkien", 1, 10))
    assert exc.value.status_code == 404
    assert exc.value.body == '{"message": "Not found."}'


@pytest.mark.parametrize("body", ["not json", '{"found": "many"}', '{"hits": [{"highlight": {}}]}'])
def test_search_bad_body_raises_parse_error(settings, body):
    fake = FakeTypesense(body=body)
    proxy = SearchProxy(settings, fake.client(settings))
    with pytest.raises(ResultParseError):
        asyncio.run(proxy.search("tolkien", 1, 10))


def test_search_transport_error(settings):
    fake = FakeTypesense(error=httpx.ConnectError("connection refused"))
    proxy = SearchProxy(settings, fake.client(settings))
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(proxy.search("tolkien", 1, 10))


def test_blank_query_by_is_not_sent(fake):
    settings = make_settings(TYPESENSE_SEARCH_BY_FIELDS="  ")
    proxy = SearchProxy(settings, fake.client(settings))
    assert [k for k, _ in proxy.build_params("dune", 1, 10)] == ["q", "per_page", "page"]
