"""Tests for S3 address parsing."""

from __future__ import annotations

import pytest

from secure_environment import AddressParseError, StorageLocation, parse_location
from secure_environment.location import DEFAULT_PATH_STYLE_REGION, address_shapes


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://my-bucket.s3.amazonaws.com/path/to/prod.env",
            StorageLocation("my-bucket", "path/to/prod.env", ""),
        ),
        (
            "https://my-bucket.s3-eu-west-1.amazonaws.com/path/to/prod.env",
            StorageLocation("my-bucket", "path/to/prod.env", "eu-west-1"),
        ),
        (
            "https://s3.amazonaws.com/my-bucket/path/to/prod.env",
            StorageLocation("my-bucket", "path/to/prod.env", DEFAULT_PATH_STYLE_REGION),
        ),
        (
            "https://s3-ap-southeast-2.amazonaws.com/my-bucket/path/to/prod.env",
            StorageLocation("my-bucket", "path/to/prod.env", "ap-southeast-2"),
        ),
    ],
)
def test_parses_each_address_shape(url: str, expected: StorageLocation) -> None:
    assert parse_location(url) == expected


@pytest.mark.parametrize(
    "url, bucket",
    [
        ("https://my-bucket.s3.amazonaws.com", "my-bucket"),
        ("https://my-bucket.s3.amazonaws.com/", "my-bucket"),
        ("http://my-bucket.s3-us-west-2.amazonaws.com/", "my-bucket"),
        ("https://s3.amazonaws.com/my-bucket", "my-bucket"),
        ("https://s3-us-west-2.amazonaws.com/my-bucket/", "my-bucket"),
    ],
)
def test_bucket_root_has_empty_key(url: str, bucket: str) -> None:
    location = parse_location(url)
    assert location.bucket == bucket
    assert location.key == ""


def test_http_scheme_accepted() -> None:
    assert parse_location("http://b.s3.amazonaws.com/k").bucket == "b"


def test_key_keeps_nested_slashes_and_dots() -> None:
    location = parse_location("https://s3-us-east-2.amazonaws.com/b/a/b.c/d.env")
    assert location.key == "a/b.c/d.env"
    assert location.region == "us-east-2"


def test_regional_host_is_not_mistaken_for_bucket() -> None:
    location = parse_location("https://s3-eu-central-1.amazonaws.com/bucket/key")
    assert location.bucket == "bucket"
    assert location.region == "eu-central-1"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "not a url",
        "s3://my-bucket/key",
        "ftp://my-bucket.s3.amazonaws.com/key",
        "https://example.com/my-bucket/key",
        "https://my-bucket.storage.googleapis.com/key",
        "https://s3.amazonaws.com/",
        "https://my-bucket.s3.amazonaws.com.evil.com/key",
    ],
)
def test_unrecognized_address_is_an_error(url: str) -> None:
    with pytest.raises(AddressParseError, match="not a recognized object-storage address"):
        parse_location(url)


def test_shapes_are_tried_in_order() -> None:
    assert address_shapes() == [
        "virtual-hosted",
        "virtual-hosted-regional",
        "path-style",
        "path-style-regional",
    ]


def test_location_is_immutable() -> None:
    location = parse_location("https://b.s3.amazonaws.com/k")
    with pytest.raises(AttributeError):
        location.bucket = "other"  # type: ignore[misc]


def test_url_round_trips_through_parser() -> None:
    for location in (
        StorageLocation("b", "k/x.env", ""),
        StorageLocation("b", "k/x.env", "us-west-2"),
    ):
        assert parse_location(location.url) == location
