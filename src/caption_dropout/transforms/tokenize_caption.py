import typing

DEFAULT_SEPARATORS = [","]


def normalize_separators(separators: typing.Optional[typing.Sequence[str]]) -> list[str]:
    """Return the effective separator list: empty strings are ignored, and an empty result falls back to `[","]`."""
    if not separators:
        return list(DEFAULT_SEPARATORS)
    normalized = [s for s in separators if s]
    if len(normalized) == 0:
        return list(DEFAULT_SEPARATORS)
    return normalized


def primary_separator(separators: typing.Optional[typing.Sequence[str]]) -> str:
    """The separator used to re-join tokens: the first entry of the effective separator list."""
    return normalize_separators(separators)[0]


def join_tokens(tokens: typing.Sequence[str], separators: typing.Optional[typing.Sequence[str]] = None) -> str:
    """Join tokens with the primary separator followed by a space, e.g. `"a, b, c"` for `","`.

    A whitespace-only primary separator is used as-is, so that `" "` does not produce double spaces.
    """
    separator = primary_separator(separators)
    join_str = separator if separator.strip() == "" else separator + " "
    return join_str.join(tokens)


def tokenize_caption(caption: str, separators: typing.Optional[typing.Sequence[str]] = None) -> list[str]:
    """Split a caption into trimmed, non-empty tokens.

    Each separator is applied in order to every piece produced by the previous separators, so separators compose. The
    separators are matched literally.

    Example:
    ```
    >>> tokenize_caption("a, b | c", [",", "|"])
    ['a', 'b', 'c']
    ```
    """
    if not caption or not caption.strip():
        return []

    pieces = [caption]
    for separator in normalize_separators(separators):
        pieces = [sub_piece for piece in pieces for sub_piece in piece.split(separator)]

    return [p.strip() for p in pieces if p.strip()]
