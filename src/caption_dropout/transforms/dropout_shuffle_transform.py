import typing

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.transforms.caption_dropout_transform import dropout_tokens
from caption_dropout.transforms.keep_tokens import resolve_keep_tokens
from caption_dropout.transforms.rng import Rng, derive_seed, make_rng
from caption_dropout.transforms.shuffle_caption_transform import shuffle_tokens
from caption_dropout.transforms.tokenize_caption import join_tokens, tokenize_caption


def apply_dropout_and_shuffle(
    caption: str,
    dropout_rate: float,
    keep_tokens: int = 0,
    keep_tokens_separator: str = "",
    separators: typing.Optional[typing.Sequence[str]] = None,
    seed: typing.Optional[int] = None,
    rng: typing.Optional[Rng] = None,
) -> str:
    """Apply caption dropout, then shuffle the surviving flexible tokens.

    If `seed` is set, a dropout seed and a shuffle seed are drawn (in that order) from one stream keyed by `seed`, so
    the result is fully determined by `seed`. If `rng` is injected, the two child seeds are drawn from it instead. With
    neither, both stages use independent non-deterministic randomness.

    The keep split is resolved once from the raw caption, so fixed segments delimited by `keep_tokens_separator` stay
    fixed through both stages.
    """
    if not caption or not caption.strip():
        return ""

    if rng is not None or seed is not None:
        parent_rng = rng if rng is not None else make_rng(seed)
        dropout_seed = derive_seed(parent_rng)
        shuffle_seed = derive_seed(parent_rng)
        dropout_rng = make_rng(dropout_seed)
        shuffle_rng = make_rng(shuffle_seed)
    else:
        dropout_rng = make_rng()
        shuffle_rng = make_rng()

    tokens = tokenize_caption(caption, separators)
    keep_split = resolve_keep_tokens(caption, tokens, keep_tokens, keep_tokens_separator, separators)
    kept = dropout_tokens(keep_split.flexible, dropout_rate, dropout_rng)
    return join_tokens(keep_split.join(shuffle_tokens(kept, shuffle_rng)), separators)


class DropoutShuffleCaptionTransform:
    """A transform that applies caption dropout followed by caption shuffle to the caption field of an example."""

    def __init__(self, field_name: str, config: CaptionTransformConfig, seed: typing.Optional[int] = None):
        self._field_name = field_name
        self._config = config
        self._rng = make_rng(seed)

    def __call__(self, data: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
        data[self._field_name] = apply_dropout_and_shuffle(
            data[self._field_name],
            dropout_rate=self._config.dropout_rate,
            keep_tokens=self._config.keep_tokens,
            keep_tokens_separator=self._config.keep_tokens_separator,
            separators=self._config.caption_separators,
            rng=self._rng,
        )
        return data
