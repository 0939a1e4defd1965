import os

import pytest

from liveserver.negotiate import FileMetadata, Validator, negotiate, parse_range

META = FileMetadata(size=100, mtime=1.5)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("bytes=0-9", (0, 9)),
        ("bytes=0-0", (0, 0)),
        ("bytes=10-", (10, 99)),
        ("bytes=-5", (0, 5)),
        ("bytes=99-99", (99, 99)),
        ("bytes=0-100", None),
        ("bytes=100-", None),
        ("bytes=5-2", None),
        ("bytes=a-b", None),
        ("bytes=0-1,3-4", None),
        ("items=0-1", None),
        ("bytes=5", None),
    ],
)
def test_parse_range(header, expected):
    assert parse_range(header, 100) == expected


def test_parse_range_on_empty_file():
    assert parse_range("bytes=0-", 0) is None


def test_validator_is_derived_from_size_and_mtime():
    validator = Validator.of(META)
    assert validator.etag == 'W/"100-1500"'
    assert validator.last_modified == "Thu, 01 Jan 1970 00:00:01 GMT"
    assert Validator.of(FileMetadata(size=100, mtime=1.5)) == validator
    assert Validator.of(FileMetadata(size=101, mtime=1.5)) != validator


def test_metadata_from_stat(tmp_path):
    path = tmp_path / "f.txt"
    path.write_bytes(b"12345")
    meta = FileMetadata.from_stat(os.stat(path))
    assert meta.size == 5
    assert not meta.is_dir
    assert FileMetadata.from_stat(os.stat(tmp_path)).is_dir


def test_full_response_without_range():
    result = negotiate(META, {})
    assert result.status == 200
    assert (result.start, result.end, result.length) == (0, 99, 100)
    assert result.content_range is None


def test_partial_response():
    result = negotiate(META, {"Range": "bytes=10-19"})
    assert result.status == 206
    assert result.length == 10
    assert result.content_range == "bytes 10-19/100"


def test_unsatisfiable_range():
    result = negotiate(META, {"Range": "bytes=50-100"})
    assert result.status == 416
    assert result.content_range == "bytes */100"
    assert not result.has_body


def test_matching_validator_is_not_modified():
    etag = Validator.of(META).etag
    assert negotiate(META, {"If-None-Match": etag}).status == 304
    assert negotiate(META, {"If-None-Match": etag}).status == 304


def test_validator_wins_over_range():
    etag = Validator.of(META).etag
    result = negotiate(META, {"If-None-Match": etag, "Range": "bytes=0-1"})
    assert result.status == 304
    assert not result.has_body


def test_stale_validator_gets_the_full_file():
    assert negotiate(META, {"If-None-Match": 'W/"100-1"'}).status == 200
