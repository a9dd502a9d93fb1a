import pytest

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.transforms.caption_dropout_transform import dropout_tokens
from caption_dropout.transforms.dropout_shuffle_transform import (
    DropoutShuffleCaptionTransform,
    apply_dropout_and_shuffle,
)
from caption_dropout.transforms.rng import derive_seed, make_rng
from caption_dropout.transforms.shuffle_caption_transform import shuffle_tokens
from caption_dropout.transforms.tokenize_caption import join_tokens, tokenize_caption


def test_apply_dropout_and_shuffle_is_deterministic_with_seed():
    caption = "a, b, c, d, e, f, g, h"

    results = [apply_dropout_and_shuffle(caption, dropout_rate=0.3, seed=42) for _ in range(5)]

    assert len(set(results)) == 1


def test_apply_dropout_and_shuffle_seeded_stages():
    """The dropout seed and the shuffle seed are drawn, in that order, from a single stream keyed by the seed."""
    caption = "a, b, c, d, e, f, g, h"
    parent_rng = make_rng(7)
    dropout_rng = make_rng(derive_seed(parent_rng))
    shuffle_rng = make_rng(derive_seed(parent_rng))
    expected = join_tokens(shuffle_tokens(dropout_tokens(tokenize_caption(caption), 0.4, dropout_rng), shuffle_rng))

    assert apply_dropout_and_shuffle(caption, dropout_rate=0.4, seed=7) == expected


def test_apply_dropout_and_shuffle_injected_rng_draws_two_seeds():
    num_draws = 0

    def rng():
        nonlocal num_draws
        num_draws += 1
        return 0.5

    apply_dropout_and_shuffle("a, b, c, d", dropout_rate=0.5, rng=rng)

    assert num_draws == 2


@pytest.mark.parametrize("seed", range(20))
def test_apply_dropout_and_shuffle_rate_zero_is_permutation(seed: int):
    caption = "a, b, c, d, e"

    result = apply_dropout_and_shuffle(caption, dropout_rate=0.0, seed=seed)

    assert sorted(tokenize_caption(result)) == ["a", "b", "c", "d", "e"]


@pytest.mark.parametrize("seed", range(20))
def test_apply_dropout_and_shuffle_keep_marker_survives_both_stages(seed: int):
    caption = "fixed ||| a, b, c, d ||| end"

    result_tokens = tokenize_caption(
        apply_dropout_and_shuffle(caption, dropout_rate=0.5, keep_tokens_separator="|||", seed=seed)
    )

    assert result_tokens[0] == "fixed"
    assert result_tokens[-1] == "end"
    assert set(result_tokens[1:-1]) <= {"a", "b", "c", "d"}


def test_apply_dropout_and_shuffle_rate_one_with_keep_marker():
    result = apply_dropout_and_shuffle("fixed ||| a, b ||| end", dropout_rate=1.0, keep_tokens_separator="|||", seed=0)

    assert result == "fixed, end"


@pytest.mark.parametrize("seed", range(20))
def test_apply_dropout_and_shuffle_keep_tokens(seed: int):
    result = apply_dropout_and_shuffle("a, b, c, d, e", dropout_rate=0.5, keep_tokens=2, seed=seed)
    result_tokens = tokenize_caption(result)

    assert result_tokens[:2] == ["a", "b"]
    assert len(set(result_tokens)) == len(result_tokens)


def test_apply_dropout_and_shuffle_without_seed_varies():
    results = {apply_dropout_and_shuffle("a, b, c, d, e, f", dropout_rate=0.3) for _ in range(50)}

    assert len(results) > 1


def test_apply_dropout_and_shuffle_empty_caption():
    assert apply_dropout_and_shuffle("", dropout_rate=0.5, seed=0) == ""


def test_dropout_shuffle_caption_transform():
    config = CaptionTransformConfig(dropout_rate=0.0, keep_tokens=1)
    tf = DropoutShuffleCaptionTransform(field_name="test_field", config=config, seed=3)

    in_example = {"test_field": "prompt part 1, prompt part 2, prompt part 3"}

    out_example = tf(in_example)

    out_tokens = tokenize_caption(out_example["test_field"])
    assert out_tokens[0] == "prompt part 1"
    assert sorted(out_tokens[1:]) == ["prompt part 2", "prompt part 3"]
