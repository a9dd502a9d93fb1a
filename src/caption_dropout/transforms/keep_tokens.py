import typing

from caption_dropout.transforms.tokenize_caption import tokenize_caption


class KeepSplit(typing.NamedTuple):
    """A caption's tokens, split by whether dropout/shuffle may touch them."""

    fixed_prefix: list[str]
    flexible: list[str]
    fixed_suffix: list[str]

    def join(self, flexible: list[str]) -> list[str]:
        """Re-assemble the fixed segments around a (transformed) list of flexible tokens."""
        return self.fixed_prefix + flexible + self.fixed_suffix


def resolve_keep_tokens(
    caption: str,
    tokens: list[str],
    keep_tokens: int = 0,
    keep_tokens_separator: str = "",
    separators: typing.Optional[typing.Sequence[str]] = None,
) -> KeepSplit:
    """Determine which tokens are protected from dropout and shuffle.

    If `keep_tokens_separator` occurs in the raw `caption`, the caption is split on it: the first segment is the fixed
    prefix, the second segment is the flexible body, and anything after a second occurrence is the fixed suffix. Each
    segment is tokenized with `separators`. `keep_tokens` is ignored in this case.

    Otherwise, the first `keep_tokens` entries of `tokens` are the fixed prefix and the remaining tokens are flexible.

    Args:
        caption (str): The raw caption, before tokenization.
        tokens (list[str]): The tokens of `caption`.
        keep_tokens (int, optional): The number of leading tokens to protect. Negative values are treated as 0.
        keep_tokens_separator (str, optional): The keep-tokens marker. Matched literally. Empty disables the marker.
        separators (Sequence[str], optional): The caption separators used to tokenize the marker segments.

    Returns:
        KeepSplit: The fixed prefix, flexible and fixed suffix tokens.
    """
    if keep_tokens_separator and keep_tokens_separator in caption:
        segments = caption.split(keep_tokens_separator)
        fixed_prefix = tokenize_caption(segments[0], separators)
        flexible = tokenize_caption(segments[1], separators)
        fixed_suffix = [t for segment in segments[2:] for t in tokenize_caption(segment, separators)]
        return KeepSplit(fixed_prefix, flexible, fixed_suffix)

    num_keep = max(keep_tokens, 0)
    return KeepSplit(list(tokens[:num_keep]), list(tokens[num_keep:]), [])
