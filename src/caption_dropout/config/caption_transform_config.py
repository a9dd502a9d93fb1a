import math
import typing

from pydantic import field_validator

from caption_dropout.config.config_base_model import ConfigBaseModel
from caption_dropout.transforms.tokenize_caption import normalize_separators


def clamp_dropout_rate(dropout_rate: float) -> float:
    """Clamp a dropout rate to [0, 1]. NaN is treated as 0."""
    if math.isnan(dropout_rate):
        return 0.0
    return min(max(dropout_rate, 0.0), 1.0)


class CaptionTransformConfig(ConfigBaseModel):
    """The parameters shared by the dropout, shuffle and combined caption transforms.

    Out-of-range values are clamped rather than rejected, so that a bad slider value never fails a simulation.
    """

    dropout_rate: float = 0.0
    """The probability of dropping each flexible caption token. Clamped to the range [0, 1].
    """

    keep_tokens: int = 0
    """The number of leading caption tokens that are never dropped or shuffled. Negative values are treated as 0.
    Ignored for captions that contain `keep_tokens_separator`.
    """

    keep_tokens_separator: str = ""
    """A marker that splits a caption into a fixed prefix, a flexible body and an optional fixed suffix, e.g.
    `"|||"`. When the marker is present in a caption, it takes precedence over `keep_tokens`. An empty string disables
    marker-based keep-tokens.
    """

    caption_separators: list[str] = [","]
    """The literal separators used to split captions into tokens, applied in order. The first separator is the primary
    separator that is used to re-join tokens. Empty strings are ignored, and an empty list falls back to `[","]`.
    """

    @field_validator("dropout_rate")
    @classmethod
    def _clamp_dropout_rate(cls, v: float) -> float:
        return clamp_dropout_rate(v)

    @field_validator("keep_tokens")
    @classmethod
    def _clamp_keep_tokens(cls, v: int) -> int:
        return max(v, 0)

    @field_validator("caption_separators", mode="before")
    @classmethod
    def _normalize_caption_separators(cls, v: typing.Any) -> typing.Any:
        if v is None:
            return [","]
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple)) and all(isinstance(s, str) for s in v):
            return normalize_separators(v)
        # Let pydantic report the type error.
        return v
