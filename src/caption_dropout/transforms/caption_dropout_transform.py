import logging
import typing

from caption_dropout.config.caption_transform_config import CaptionTransformConfig, clamp_dropout_rate
from caption_dropout.transforms.keep_tokens import resolve_keep_tokens
from caption_dropout.transforms.rng import Rng, make_rng, resolve_rng
from caption_dropout.transforms.tokenize_caption import join_tokens, tokenize_caption

logger = logging.getLogger(__name__)


def dropout_tokens(tokens: list[str], dropout_rate: float, rng: Rng) -> list[str]:
    """Keep each token iff a fresh draw from `rng` is strictly greater than `dropout_rate`.

    Exactly one value is drawn per token, in token order.
    """
    dropout_rate = clamp_dropout_rate(dropout_rate)
    return [t for t in tokens if rng() > dropout_rate]


def apply_caption_dropout(
    caption: str,
    dropout_rate: float,
    keep_tokens: int = 0,
    keep_tokens_separator: str = "",
    separators: typing.Optional[typing.Sequence[str]] = None,
    seed: typing.Optional[int] = None,
    rng: typing.Optional[Rng] = None,
) -> str:
    """Randomly drop caption tokens.

    Protected tokens (see `resolve_keep_tokens`) are always kept in their original position. The result is joined with
    the primary separator.

    Args:
        caption (str): The caption to transform.
        dropout_rate (float): The probability of dropping each flexible token. Clamped to [0, 1].
        keep_tokens (int, optional): The number of leading tokens to protect.
        keep_tokens_separator (str, optional): The keep-tokens marker. Takes precedence over `keep_tokens` when present.
        separators (Sequence[str], optional): The caption separators. Defaults to `[","]`.
        seed (int, optional): Seed for a reproducible result. Ignored if `rng` is passed.
        rng (Rng, optional): An injected random source.

    Returns:
        str: The transformed caption.
    """
    if not caption or not caption.strip():
        return ""

    rng = resolve_rng(seed, rng)
    tokens = tokenize_caption(caption, separators)
    keep_split = resolve_keep_tokens(caption, tokens, keep_tokens, keep_tokens_separator, separators)
    kept = dropout_tokens(keep_split.flexible, dropout_rate, rng)
    logger.debug(f"Dropout kept {len(kept)}/{len(keep_split.flexible)} flexible tokens.")
    return join_tokens(keep_split.join(kept), separators)


class CaptionDropoutTransform:
    """A transform that applies caption dropout to the caption field of an example.

    Example:
    - Original: "unreal engine, render of sci-fi helmet, dramatic lighting"
    - Dropout: "unreal engine, dramatic lighting"
    """

    def __init__(self, field_name: str, config: CaptionTransformConfig, seed: typing.Optional[int] = None):
        self._field_name = field_name
        self._config = config
        self._rng = make_rng(seed)

    def __call__(self, data: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
        data[self._field_name] = apply_caption_dropout(
            data[self._field_name],
            dropout_rate=self._config.dropout_rate,
            keep_tokens=self._config.keep_tokens,
            keep_tokens_separator=self._config.keep_tokens_separator,
            separators=self._config.caption_separators,
            rng=self._rng,
        )
        return data
