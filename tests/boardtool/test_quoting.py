"""Tests for quote-aware command line splitting."""

import pytest

from boardtool.primitives.errors import RecipeError
from boardtool.primitives.quoting import split_quoted


class TestSplitQuoted:
    """split_quoted() tokenization."""

    def test_mixed_quotes(self):
        """Double and single quoted segments become single tokens."""
        assert split_quoted("a \"b c\" 'd e'") == ["a", "b c", "d e"]

    def test_plain_whitespace(self):
        """Runs of whitespace separate tokens; empty tokens dropped."""
        assert split_quoted("  gdb   -q\t--batch ") == ["gdb", "-q", "--batch"]

    def test_unterminated_quote(self):
        """An unterminated quote fails."""
        with pytest.raises(RecipeError, match="no closing"):
            split_quoted('a "b')

    def test_inner_quotes_kept(self):
        """Quotes of the other kind inside a quoted token are kept."""
        src = "-ex 'target extended-remote | \"/opt/openocd\" -c \"gdb_port pipe\"'"
        assert split_quoted(src) == [
            "-ex",
            'target extended-remote | "/opt/openocd" -c "gdb_port pipe"',
        ]

    def test_quote_inside_unquoted_token(self):
        """A quote only opens at the start of a token."""
        assert split_quoted("--interpreter=mi2 x") == ["--interpreter=mi2", "x"]

    def test_inner_spacing_preserved(self):
        """Whitespace inside quotes is kept verbatim."""
        assert split_quoted('"a  b"') == ["a  b"]

    def test_empty_quoted_dropped(self):
        """Empty quoted arguments are dropped."""
        assert split_quoted('a "" b') == ["a", "b"]

    def test_empty_input(self):
        """Empty input yields no tokens."""
        assert split_quoted("") == []
