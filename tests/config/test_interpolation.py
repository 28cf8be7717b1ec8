"""Tests for _interpolation.py — ${NAME} tokens and file: inclusion."""

import pytest

from layerconf._environment import FakeEnvironment
from layerconf._interpolation import include_file, interpolate, interpolate_string
from layerconf._types import InterpolationError, ParseError, SourceNotFoundError


def _env(**values) -> FakeEnvironment:
    return FakeEnvironment(values)


class TestInterpolateString:
    def test_defined_variable_beats_default(self):
        assert interpolate_string("${HOST:0.0.0.0}", _env(HOST="db.local")) == "db.local"

    def test_default_used_when_undefined(self):
        assert interpolate_string("${HOST:0.0.0.0}", _env()) == "0.0.0.0"

    def test_missing_without_default_raises(self):
        with pytest.raises(InterpolationError, match="PORT") as exc_info:
            interpolate_string("${PORT}", _env(), path="server.port")
        assert exc_info.value.name == "PORT"
        assert exc_info.value.path == "server.port"

    def test_literal_text_preserved(self):
        result = interpolate_string(
            "${DATABASE_URL}/my_database", _env(DATABASE_URL="postgres://h")
        )
        assert result == "postgres://h/my_database"

    def test_multiple_tokens(self):
        result = interpolate_string("${USER}@${HOST:localhost}:${PORT}", _env(USER="u", PORT="1"))
        assert result == "u@localhost:1"

    def test_empty_value_is_defined(self):
        assert interpolate_string("[${EMPTY:fallback}]", _env(EMPTY="")) == "[]"

    def test_empty_default(self):
        assert interpolate_string("[${MISSING:}]", _env()) == "[]"

    def test_default_keeps_colons(self):
        assert interpolate_string("${URL:http://localhost:8000}", _env()) == "http://localhost:8000"

    def test_substitution_not_rescanned(self):
        result = interpolate_string("${OUTER}", _env(OUTER="${INNER}", INNER="leak"))
        assert result == "${INNER}"

    def test_default_not_rescanned(self):
        assert interpolate_string("${A:$}{B}", _env(B="x")) == "${B}"

    def test_plain_dollar_is_literal(self):
        assert interpolate_string("cost $5 and $HOME", _env(HOME="/root")) == "cost $5 and $HOME"

    def test_no_tokens(self):
        assert interpolate_string("plain", _env()) == "plain"

    def test_unterminated_token(self):
        with pytest.raises(ParseError, match="unterminated"):
            interpolate_string("prefix ${HOST", _env(HOST="h"))

    def test_empty_name(self):
        with pytest.raises(ParseError, match="empty variable name"):
            interpolate_string("${}", _env())

    def test_empty_name_with_default(self):
        with pytest.raises(ParseError):
            interpolate_string("${:default}", _env())

    def test_invalid_name(self):
        with pytest.raises(ParseError, match="invalid variable name"):
            interpolate_string("${1ABC}", _env())


class TestInterpolateTree:
    def test_recurses_tables_and_arrays(self):
        tree = {
            "server": {"host": "${HOST}", "port": 8080, "debug": True},
            "hosts": ["${HOST}", "static", {"name": "${NAME:n}"}],
        }
        result = interpolate(tree, _env(HOST="h"))
        assert result == {
            "server": {"host": "h", "port": 8080, "debug": True},
            "hosts": ["h", "static", {"name": "n"}],
        }

    def test_returns_new_tree(self):
        tree = {"a": {"b": "${X}"}}
        result = interpolate(tree, _env(X="1"))
        assert tree == {"a": {"b": "${X}"}}
        assert result is not tree

    def test_keys_are_not_interpolated(self):
        assert interpolate({"${X}": "v"}, _env(X="1")) == {"${X}": "v"}

    def test_error_reports_leaf_path(self):
        tree = {"servers": [{"host": "ok"}, {"host": "${MISSING}"}]}
        with pytest.raises(InterpolationError) as exc_info:
            interpolate(tree, _env(), source="base.toml")
        assert exc_info.value.path == "servers[1].host"
        assert exc_info.value.source == "base.toml"
        assert "base.toml" in str(exc_info.value)

    def test_preserves_order(self):
        tree = {"z": 1, "a": 2, "m": ["${X}", "${Y}"]}
        result = interpolate(tree, _env(X="x", Y="y"))
        assert list(result) == ["z", "a", "m"]
        assert result["m"] == ["x", "y"]


class TestFileInclusion:
    def test_leaf_replaced_by_file_contents(self, tmp_path):
        secret = tmp_path / "password"
        secret.write_text("hunter2", encoding="utf-8")
        result = interpolate({"db": {"password": f"file:{secret}"}}, _env())
        assert result == {"db": {"password": "hunter2"}}

    def test_contents_inserted_verbatim(self, tmp_path):
        secret = tmp_path / "token"
        secret.write_text("${NOT_EXPANDED}\n", encoding="utf-8")
        assert include_file(f"file:{secret}") == "${NOT_EXPANDED}\n"

    def test_path_may_come_from_environment(self, tmp_path):
        (tmp_path / "key").write_text("abc", encoding="utf-8")
        result = interpolate({"key": "file:${SECRETS_DIR}/key"}, _env(SECRETS_DIR=str(tmp_path)))
        assert result == {"key": "abc"}

    def test_missing_file_raises(self, tmp_path):
        missing = tmp_path / "nope"
        with pytest.raises(SourceNotFoundError) as exc_info:
            interpolate({"db": {"password": f"file:{missing}"}}, _env())
        assert exc_info.value.source == str(missing)
        assert exc_info.value.path == "db.password"

    def test_prefix_must_start_leaf(self):
        assert include_file("see file:/etc/passwd") == "see file:/etc/passwd"

    def test_substituted_value_is_never_included(self, tmp_path):
        secret = tmp_path / "s"
        secret.write_text("LEAKED", encoding="utf-8")
        result = interpolate({"name": "${USER_INPUT}"}, _env(USER_INPUT=f"file:{secret}"))
        assert result == {"name": f"file:{secret}"}

    def test_default_is_never_included(self, tmp_path):
        secret = tmp_path / "s"
        secret.write_text("LEAKED", encoding="utf-8")
        result = interpolate({"name": "${UNSET:file:" + str(secret) + "}"}, _env())
        assert result == {"name": f"file:{secret}"}

    def test_included_path_error_reports_leaf(self):
        with pytest.raises(InterpolationError) as exc_info:
            interpolate({"db": {"password": "file:${SECRETS_DIR}/pw"}}, _env())
        assert exc_info.value.name == "SECRETS_DIR"
        assert exc_info.value.path == "db.password"

    def test_can_be_disabled(self, tmp_path):
        assert interpolate({"k": "file:/does/not/exist"}, _env(), include_files=False) == {
            "k": "file:/does/not/exist"
        }
