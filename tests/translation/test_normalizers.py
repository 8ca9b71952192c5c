import pytest

from autotranslator.translation.utils import (
    collapse_whitespace_between_newlines,
    ensure_three_pipes,
    localize_quotes,
    replace_lone_backslashes,
)


class TestEnsureThreePipes:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("|Hallo||", "|||Hallo|||"),
            ("|||Hallo|||", "|||Hallo|||"),
            ("||||Hallo ", "|||Hallo||| "),
            ("  |Hallo|  ", "  |||Hallo|||  "),
            ("|||", "|||"),
            ("Hallo|", "Hallo|"),
            ("Hallo", "Hallo"),
            ("", ""),
        ],
    )
    def test_normalizes_pipe_runs(self, value: str, expected: str) -> None:
        assert ensure_three_pipes(value) == expected

    def test_idempotent(self) -> None:
        for value in ["|a", "||a|b||", " |||x||||| ", "plain", "|"]:
            once = ensure_three_pipes(value)
            assert ensure_three_pipes(once) == once


class TestQuotes:
    @pytest.mark.parametrize(
        "language, expected",
        [
            ("de", "Er sagte „Hallo“."),
            ("fr", "Er sagte «Hallo»."),
            ("pl", "Er sagte „Hallo”."),
            ("en-GB", "Er sagte “Hallo”."),
            ("ja", "Er sagte “Hallo”."),
        ],
    )
    def test_localize_quotes(self, language: str, expected: str) -> None:
        assert localize_quotes('Er sagte "Hallo".', language) == expected

    def test_unpaired_quote_untouched(self) -> None:
        assert localize_quotes('5" tall', "de") == '5" tall'


class TestNewlines:
    def test_lone_backslash_becomes_escaped_newline(self) -> None:
        assert replace_lone_backslashes("a\\b") == "a\\nb"
        assert replace_lone_backslashes("a\\nb") == "a\\nb"
        assert replace_lone_backslashes("end\\") == "end\\n"

    def test_collapse_whitespace_between_newlines(self) -> None:
        assert collapse_whitespace_between_newlines("a\\n \\n  \\nb") == "a\\n\\n\\nb"
        assert collapse_whitespace_between_newlines("a\\n b") == "a\\n b"
