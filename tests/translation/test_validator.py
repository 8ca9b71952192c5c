from autotranslator.translation.validator import (
    extract_placeholders,
    has_leftover_markers,
    validate_placeholders_preserved,
)


class TestPlaceholderValidation:
    def test_extract_keeps_order_and_duplicates(self) -> None:
        assert extract_placeholders("{a} {b} {a}") == ["a", "b", "a"]

    def test_preserved(self) -> None:
        assert validate_placeholders_preserved("Hi {name}", "Hallo {name}") == (True, None)

    def test_lost(self) -> None:
        assert validate_placeholders_preserved("{a} {b}", "{a}") == (False, "placeholders_lost:b")

    def test_added(self) -> None:
        assert validate_placeholders_preserved("{a}", "{a} {x}") == (False, "placeholders_added:x")

    def test_reordered(self) -> None:
        assert validate_placeholders_preserved("{a} {b}", "{b} {a}") == (False, "placeholders_reordered")

    def test_leftover_markers(self) -> None:
        assert has_leftover_markers("a <keep>b")
        assert has_leftover_markers('<mstrans:dictionary translation="x">')
        assert not has_leftover_markers("clean")
