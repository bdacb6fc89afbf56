"""
Unit tests for identifier case conversions.
"""

from gateway_codegen.casing import camel_case, lint_acronym, pascal_case, title


class TestCamelCase:
    def test_joins_chunks(self):
        assert camel_case("example-dep") == "exampleDep"
        assert camel_case("tchannel/foo") == "tchannelFoo"
        assert camel_case("clients_bar_bar") == "clientsBarBar"

    def test_first_chunk_untouched(self):
        assert camel_case("Bar_baz") == "BarBaz"

    def test_empty(self):
        assert camel_case("") == ""
        assert camel_case("--") == ""

    def test_pascal(self):
        assert pascal_case("example-dep") == "ExampleDep"


class TestLintAcronym:
    """Initialisms are rewritten the way golint expects."""

    def test_trailing_initialism(self):
        assert lint_acronym("userId") == "userID"

    def test_leading_initialism(self):
        assert lint_acronym("HttpClient") == "HTTPClient"

    def test_leading_lowercase_initialism_kept(self):
        assert lint_acronym("idUser") == "idUser"

    def test_plain_words_unchanged(self):
        assert lint_acronym("BarEchoHandler") == "BarEchoHandler"

    def test_underscore_segments(self):
        assert lint_acronym("Bar_echo_Args") == "Bar_echo_Args"


def test_title():
    assert title("client mock") == "Client Mock"
