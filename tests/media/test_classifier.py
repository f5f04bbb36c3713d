"""Tests for media type classification and Accept negotiation."""

import pytest
from mimekv.core.config import MediaConfig
from mimekv.media.classifier import (
    MediaClass,
    MediaPolicy,
    MediaRange,
    classify,
    essence_of,
    is_acceptable,
    parse_accept,
)


# ━━━ classify ━━━


@pytest.mark.parametrize(
    "header",
    [
        "text/plain",
        "application/json",
        "application/xml",
        "text/html",
        "image/png",
        "image/jpeg",
        "application/pdf",
        "application/zip",
        "application/vnd.api+json",
        "model/gltf-binary",
    ],
)
def test_concrete_types_are_specific(header):
    result = classify(header)
    assert result.kind is MediaClass.SPECIFIC
    assert result.is_specific
    assert result.media_type == header


def test_specific_type_is_lowercased():
    result = classify("Image/PNG")
    assert result.media_type == "image/png"
    assert result.essence == "image/png"


def test_parameters_are_kept():
    result = classify("text/plain;charset=UTF-8")
    assert result.is_specific
    assert result.media_type == "text/plain; charset=UTF-8"
    assert result.essence == "text/plain"


@pytest.mark.parametrize("header", [None, "", "   "])
def test_missing_header_is_malformed(header):
    result = classify(header)
    assert result.kind is MediaClass.MALFORMED
    assert result.media_type is None
    assert "missing" in result.reason


@pytest.mark.parametrize(
    "header",
    ["text", "text/", "/plain", "text/plain/extra", "text plain", "te xt/plain", "text/plain; charset"],
)
def test_unparseable_header_is_malformed(header):
    assert classify(header).kind is MediaClass.MALFORMED


@pytest.mark.parametrize("header", ["*/*", "image/*", "text/*; charset=utf-8"])
def test_wildcards_are_generic(header):
    result = classify(header)
    assert result.kind is MediaClass.GENERIC
    assert "Wildcard" in result.reason


def test_octet_stream_is_generic_by_default():
    result = classify("application/octet-stream")
    assert result.kind is MediaClass.GENERIC
    assert "application/octet-stream" in result.reason


def test_octet_stream_allowed_by_policy():
    policy = MediaPolicy(allow_octet_stream=True)
    result = classify("application/octet-stream", policy)
    assert result.is_specific
    assert result.media_type == "application/octet-stream"


def test_custom_generic_types():
    policy = MediaPolicy(generic_types=frozenset({"application/unknown"}))
    assert classify("application/unknown", policy).kind is MediaClass.GENERIC
    # octet-stream is no longer on this table
    assert classify("application/octet-stream", policy).is_specific


def test_policy_from_config():
    config = MediaConfig(allow_octet_stream=True, generic_types=[" Binary/Octet-Stream "])
    policy = MediaPolicy.from_config(config)
    assert policy.allow_octet_stream is True
    assert policy.generic_types == frozenset({"binary/octet-stream"})
    assert classify("binary/octet-stream", policy).kind is MediaClass.GENERIC


def test_classify_is_pure():
    first = classify("image/png")
    second = classify("image/png")
    assert first == second


# ━━━ parse_accept ━━━


def test_parse_accept_list():
    ranges = parse_accept("text/html, image/*;q=0.8, */*;q=0.1")
    assert ranges == [
        MediaRange("text", "html", 1.0),
        MediaRange("image", "*", 0.8),
        MediaRange("*", "*", 0.1),
    ]


def test_parse_accept_drops_garbage():
    ranges = parse_accept("garbage, text/plain, */html")
    assert ranges == [MediaRange("text", "plain", 1.0)]


def test_parse_accept_bad_q_defaults_to_one():
    assert parse_accept("text/plain;q=abc")[0].q == 1.0


def test_essence_of():
    assert essence_of("Text/HTML ; charset=utf-8") == "text/html"


# ━━━ is_acceptable ━━━


@pytest.mark.parametrize(
    "accept, stored, expected",
    [
        ("text/plain", "text/plain", True),
        ("text/*", "text/plain", True),
        ("*/*", "text/plain", True),
        ("application/json", "text/plain", False),
        ("text/html", "application/json", False),
        ("text/*", "application/json", False),
        ("text/html", "application/html", False),
        ("application/*", "text/html", False),
        ("image/*", "image/png", True),
        ("text/plain", "image/png", False),
    ],
)
def test_accept_matching(accept, stored, expected):
    assert is_acceptable(stored, accept) is expected


@pytest.mark.parametrize("accept", [None, "", "  "])
def test_absent_accept_matches_anything(accept):
    assert is_acceptable("image/png", accept) is True


def test_accept_list_any_match():
    assert is_acceptable("image/png", "text/html, application/json, image/png")


def test_accept_ignores_stored_parameters():
    assert is_acceptable("text/plain; charset=utf-8", "text/plain")


def test_accept_is_case_insensitive():
    assert is_acceptable("image/png", "IMAGE/PNG")


def test_q_zero_excludes():
    assert is_acceptable("image/png", "image/png;q=0") is False


def test_most_specific_range_wins():
    assert is_acceptable("text/plain", "text/plain;q=0, */*") is False
    assert is_acceptable("text/html", "text/plain;q=0, */*") is True


def test_unparseable_accept_is_treated_as_absent():
    assert is_acceptable("image/png", "nonsense") is True
