"""Quote-aware splitting of expanded recipe command lines."""

from typing import List

from boardtool.primitives.errors import RecipeError

DEFAULT_QUOTE_CHARS = "\"'"


def split_quoted(src: str, quote_chars: str = DEFAULT_QUOTE_CHARS) -> List[str]:
    """Split ``src`` into arguments, honouring quoted segments.

    Rules:
    - Tokens are separated by whitespace outside quotes.
    - A quote character opens a quoted token only at the start of a token.
      The token runs, whitespace included, up to the next matching quote
      that is followed by whitespace or the end of the input.
    - The opening and closing quotes are stripped. Other quote characters
      inside a token are kept (``'a "b c"'`` -> ``a "b c"``).
    - Empty tokens are dropped.

    Raises:
        RecipeError: If a quoted token is never closed.
    """
    tokens: List[str] = []
    i = 0
    n = len(src)

    while i < n:
        char = src[i]
        if char.isspace():
            i += 1
            continue

        if char in quote_chars:
            end = i + 1
            while end < n and not (
                src[end] == char and (end + 1 == n or src[end + 1].isspace())
            ):
                end += 1
            if end >= n:
                raise RecipeError(f"invalid quoting, no closing `{char}` char found")
            token = src[i + 1:end]
            i = end + 1
        else:
            end = i
            while end < n and not src[end].isspace():
                end += 1
            token = src[i:end]
            i = end

        if token.strip():
            tokens.append(token)

    return tokens
