from autotranslator import language_codes as lc


class TestLanguageCodes:
    def test_language_names(self) -> None:
        assert lc.get_language_name("de") == "German"
        assert lc.get_language_name("PT-BR") == "Portuguese"
        assert lc.get_language_name("xx") is None
        assert lc.get_language_name("") is None

    def test_base_language(self) -> None:
        assert lc.extract_base_language("PT-BR") == "pt"

    def test_quote_pairs(self) -> None:
        assert lc.get_quote_pair("de-AT") == ("„", "“")
        assert lc.get_quote_pair("ru") == ("«", "»")
        assert lc.get_quote_pair("") == lc.DEFAULT_QUOTE_PAIR
