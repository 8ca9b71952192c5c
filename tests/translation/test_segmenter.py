from autotranslator.translation import segmenter


class TestSplit:
    def test_sentence_boundaries(self) -> None:
        assert segmenter.split("Run! Hide. Fight?") == ["Run!", "Hide.", "Fight?"]

    def test_escaped_newlines_are_own_units(self) -> None:
        text = "First line.\\n\\nSecond line."

        assert segmenter.split(text) == ["First line.", "\\n\\n", "Second line."]

    def test_newline_padding_stays_in_separator(self) -> None:
        assert segmenter.split("A \\n B") == ["A", " \\n ", "B"]

    def test_tag_delimiters_keep_surrounding_whitespace(self) -> None:
        units = segmenter.split("Then <b>fight</b> now.")

        assert units == ["Then", " <b>", "fight", "</b> ", "now."]

    def test_placeholder_never_split(self) -> None:
        assert segmenter.split("Roll {dice. Then} now") == ["Roll {dice. Then} now"]
        assert segmenter.split("Roll {dice! x}. Then go.") == ["Roll {dice! x}.", "Then go."]

    def test_empty_units_dropped(self) -> None:
        assert segmenter.split("") == []
        assert segmenter.split("   ") == []
        assert segmenter.split("<i></i>") == ["<i>", "</i>"]


class TestJoin:
    def test_space_between_text_units(self) -> None:
        assert segmenter.join(["Run!", "Hide."]) == "Run! Hide."

    def test_no_space_next_to_markup(self) -> None:
        assert segmenter.join(["A", "\\n", "B"]) == "A\\nB"

    def test_reconstructs_markup_spacing(self) -> None:
        samples = [
            "Then <b>fight</b> now.",
            "Take <i>the sword</i>.",
            "Line one.\\n\\nLine two.",
            "Run! Hide. Fight?",
        ]
        for text in samples:
            assert segmenter.join(segmenter.split(text)) == text

    def test_numbers_keep_separating_space(self) -> None:
        assert segmenter.join(segmenter.split("Roll 10. Then 20.")) == "Roll 10. Then 20."


class TestClassification:
    def test_is_translatable(self) -> None:
        assert segmenter.is_translatable("Hi")
        assert segmenter.is_translatable("Ärger!")
        assert not segmenter.is_translatable("\\n")
        assert not segmenter.is_translatable("123.")
        assert not segmenter.is_translatable(" <i>")
        assert not segmenter.is_translatable("")

    def test_is_markup(self) -> None:
        assert segmenter.is_markup(" <b>")
        assert segmenter.is_markup("</I> ")
        assert segmenter.is_markup(" \\n\\n ")
        assert not segmenter.is_markup("Hi")
        assert not segmenter.is_markup("<b>Hi")
