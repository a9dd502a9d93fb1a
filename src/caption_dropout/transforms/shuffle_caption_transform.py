import typing

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.transforms.keep_tokens import resolve_keep_tokens
from caption_dropout.transforms.rng import Rng, make_rng, resolve_rng
from caption_dropout.transforms.tokenize_caption import join_tokens, tokenize_caption


def shuffle_tokens(tokens: list[str], rng: Rng) -> list[str]:
    """Return a Fisher-Yates shuffled copy of `tokens`.

    For `i` from `len(tokens) - 1` down to 1, `j = floor(rng() * (i + 1))` is drawn and tokens `i` and `j` are swapped.
    """
    shuffled = list(tokens)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def shuffle_caption(
    caption: str,
    keep_tokens: int = 0,
    keep_tokens_separator: str = "",
    separators: typing.Optional[typing.Sequence[str]] = None,
    seed: typing.Optional[int] = None,
    rng: typing.Optional[Rng] = None,
) -> str:
    """Randomly re-order the flexible tokens of a caption.

    Protected tokens (see `resolve_keep_tokens`) keep their order and position. The result is joined with the primary
    separator.
    """
    if not caption or not caption.strip():
        return ""

    rng = resolve_rng(seed, rng)
    tokens = tokenize_caption(caption, separators)
    keep_split = resolve_keep_tokens(caption, tokens, keep_tokens, keep_tokens_separator, separators)
    return join_tokens(keep_split.join(shuffle_tokens(keep_split.flexible, rng)), separators)


class ShuffleCaptionTransform:
    """A transform that applies shuffle transformations to character-delimited captions.

    Example:
    - Original: "unreal engine, render of sci-fi helmet, dramatic lighting"
    - Shuffled: "render of sci-fi helmet, unreal engine, dramatic lighting"
    """

    def __init__(self, field_name: str, config: CaptionTransformConfig, seed: typing.Optional[int] = None):
        self._field_name = field_name
        self._config = config
        self._rng = make_rng(seed)

    def __call__(self, data: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
        data[self._field_name] = shuffle_caption(
            data[self._field_name],
            keep_tokens=self._config.keep_tokens,
            keep_tokens_separator=self._config.keep_tokens_separator,
            separators=self._config.caption_separators,
            rng=self._rng,
        )
        return data
