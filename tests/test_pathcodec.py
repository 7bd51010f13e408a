"""Tests for project id encodings."""

import pytest

from agent_history.pathcodec import (
    decode_base64url,
    decode_legacy_path,
    decode_path_id,
    encode_base64url,
    encode_legacy_path,
    encode_path_id,
    project_name,
)


class TestLegacyEncoding:
    """Tests for the separator-substitution encoding."""

    @pytest.mark.parametrize("path", ["/home/user/project", "/", "/a/b_c/d.e"])
    def test_round_trip_without_filler(self, path):
        assert decode_legacy_path(encode_legacy_path(path)) == path

    def test_known_collision(self):
        """Paths that differ only in '-' versus '/' encode identically."""
        assert encode_legacy_path("/a/b-c") == encode_legacy_path("/a/b/c") == "-a-b-c"
        assert decode_legacy_path("-a-b-c") == "/a/b/c"


class TestEscapedEncoding:
    """Tests for the collision-free project id encoding."""

    @pytest.mark.parametrize("path", [
        "/home/user/project",
        "/a/b-c",
        "/a/b/c",
        "/weird/%2D/dir",
        "/100%/done-",
        "",
    ])
    def test_round_trip(self, path):
        assert decode_path_id(encode_path_id(path)) == path

    def test_no_collision(self):
        assert encode_path_id("/a/b-c") != encode_path_id("/a/b/c")

    def test_matches_legacy_without_filler(self):
        assert encode_path_id("/home/user/project") == "-home-user-project"

    def test_decodes_legacy_ids(self):
        assert decode_path_id("-home-user-project") == "/home/user/project"


class TestBase64Url:
    """Tests for Codex project ids."""

    def test_round_trip(self):
        encoded = encode_base64url("/home/user/プロジェクト")
        assert "=" not in encoded
        assert decode_base64url(encoded) == "/home/user/プロジェクト"

    def test_invalid_utf8(self):
        with pytest.raises(ValueError):
            decode_base64url("_w")


def test_project_name():
    assert project_name("/home/user/project") == "project"
    assert project_name("/home/user/project/") == "project"
    assert project_name("unknown") == "unknown"
    assert project_name("/") == "/"
