"""Tests for request construction."""

import json

import pytest

from s3spaces.models import EMPTY_BODY, Body, RawResponse
from s3spaces.request import (
    AnyQuery,
    CannedAcl,
    Delimiter,
    Marker,
    MaxKeys,
    Prefix,
    Request,
    body_and_headers,
    body_bytes,
    body_text,
    bytes_body,
    delete_object,
    discard,
    empty_body,
    get_object,
    get_object_bytes,
    get_object_with_headers,
    head_object,
    headers_only,
    html_body,
    json_body,
    list_keys,
    object_path,
    parse_key_list,
    put_html_object,
    put_object,
    put_public_object,
    query_pair,
    string_body,
)


class TestQueryElements:
    """Tests for query element translation."""

    @pytest.mark.parametrize(
        "element, expected",
        [
            (Delimiter("/"), ("delimiter", "/")),
            (Marker("photos/2017"), ("marker", "photos/2017")),
            (MaxKeys(100), ("max-keys", "100")),
            (Prefix("photos/"), ("prefix", "photos/")),
            (AnyQuery("encoding-type", "url"), ("encoding-type", "url")),
            (("list-type", 2), ("list-type", "2")),
        ],
    )
    def test_translates_to_query_names(self, element, expected):
        assert query_pair(element) == expected

    def test_unknown_element_raises(self):
        with pytest.raises(TypeError, match="Unsupported query element"):
            query_pair(42)


class TestAddQuery:
    """add_query appends without deduplication."""

    def test_appends_in_order(self):
        request = list_keys("b1", Prefix("a/")).add_query(MaxKeys(10), Marker("m"))

        assert request.query == (("prefix", "a/"), ("max-keys", "10"), ("marker", "m"))

    def test_length_is_sum_of_parts(self):
        base = list_keys("b1", Prefix("a/"), Delimiter("/"))
        extra = (MaxKeys(1), MaxKeys(2), AnyQuery("x", "y"))

        request = base.add_query(*extra)

        assert len(request.query) == len(base.query) + len(extra)

    def test_duplicates_retained(self):
        request = list_keys("b1", MaxKeys(1)).add_query(MaxKeys(1))

        assert request.query == (("max-keys", "1"), ("max-keys", "1"))

    def test_original_request_unchanged(self):
        base = list_keys("b1")

        base.add_query(MaxKeys(5))

        assert base.query == ()

    def test_add_nothing(self):
        base = list_keys("b1", Prefix("p"))

        assert base.add_query() == base


class TestAddHeaders:
    """add_headers appends without deduplication."""

    def test_appends_in_order(self):
        request = get_object("b1", "k").add_headers(("a", "1")).add_headers(
            ("b", "2"), ("a", "3")
        )

        assert request.headers == (("a", "1"), ("b", "2"), ("a", "3"))

    def test_composes_with_query(self):
        request = (
            list_keys("b1")
            .add_headers(("x-amz-request-payer", "requester"))
            .add_query(Prefix("p"))
        )

        assert request.headers == (("x-amz-request-payer", "requester"),)
        assert request.query == (("prefix", "p"),)

    def test_with_acl_accepts_enum_and_string(self):
        request = put_object("b1", "k", empty_body()).with_acl(CannedAcl.PRIVATE)
        request = request.with_acl("bucket-owner-read")

        assert request.headers == (
            ("x-amz-acl", "private"),
            ("x-amz-acl", "bucket-owner-read"),
        )


class TestOperations:
    """Tests for the per-operation builders."""

    def test_object_path(self):
        assert object_path("b1", "dir/k.txt") == "/b1/dir/k.txt"

    def test_list_keys(self):
        request = list_keys("b1", MaxKeys(100))

        assert request.method == "GET"
        assert request.path == "/b1/"
        assert request.query == (("max-keys", "100"),)
        assert request.body == EMPTY_BODY
        assert request.transform is parse_key_list

    def test_get_object(self):
        request = get_object("b1", "k.txt")

        assert (request.method, request.path) == ("GET", "/b1/k.txt")
        assert request.transform is body_text

    def test_get_object_bytes(self):
        assert get_object_bytes("b1", "k.bin").transform is body_bytes

    def test_get_object_with_headers(self):
        request = get_object_with_headers("b1", "k.txt")

        assert (request.method, request.path) == ("GET", "/b1/k.txt")
        assert request.transform is body_and_headers

    def test_head_object(self):
        request = head_object("b1", "k.txt")

        assert (request.method, request.path) == ("HEAD", "/b1/k.txt")
        assert request.transform is headers_only
        assert request.body.is_empty

    def test_delete_object(self):
        request = delete_object("b1", "k.txt")

        assert (request.method, request.path) == ("DELETE", "/b1/k.txt")
        assert request.transform is discard

    def test_put_object(self):
        body = string_body("hello")

        request = put_object("b1", "k.txt", body, headers=(("x-amz-meta-a", "1"),))

        assert (request.method, request.path) == ("PUT", "/b1/k.txt")
        assert request.body == body
        assert request.headers == (("x-amz-meta-a", "1"),)
        assert request.transform is discard

    def test_put_public_object(self):
        request = put_public_object("b1", "k.txt", string_body("x"))

        assert request.headers == (("x-amz-acl", "public-read"),)

    def test_put_html_object(self):
        request = put_html_object("b1", "index.html", "<p>x</p>")

        assert request.body == Body(b"<p>x</p>", "text/html")
        assert request.headers.count(("x-amz-acl", "public-read")) == 1

    def test_requests_are_generic_descriptors(self):
        request = Request("GET", "/b1/k", body_text)

        assert request == get_object("b1", "k")


class TestBodies:
    """Tests for body helpers."""

    def test_empty_body(self):
        assert empty_body().is_empty

    def test_string_body_defaults_to_plain_text(self):
        assert string_body("héllo") == Body("héllo".encode("utf-8"), "text/plain")

    def test_html_body(self):
        assert html_body("<p>x</p>").mimetype == "text/html"

    def test_json_body(self):
        body = json_body({"a": [1, 2]})

        assert body.mimetype == "application/json"
        assert json.loads(body.content) == {"a": [1, 2]}

    def test_bytes_body(self):
        assert bytes_body(b"\x00\x01") == Body(b"\x00\x01", "application/octet-stream")


class TestTransforms:
    """Tests for response transforms."""

    @pytest.fixture
    def response(self) -> RawResponse:
        return RawResponse(
            status=200,
            headers=[("etag", '"abc"'), ("content-type", "text/plain")],
            body=b"hello",
        )

    def test_body_text(self, response):
        assert body_text(response) == "hello"

    def test_body_bytes(self, response):
        assert body_bytes(response) == b"hello"

    def test_body_and_headers(self, response):
        assert body_and_headers(response) == (
            "hello",
            [("etag", '"abc"'), ("content-type", "text/plain")],
        )

    def test_headers_only(self, response):
        assert headers_only(response) == response.headers

    def test_discard(self, response):
        assert discard(response) is None
