import pytest

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.transforms.shuffle_caption_transform import (
    ShuffleCaptionTransform,
    shuffle_caption,
    shuffle_tokens,
)
from caption_dropout.transforms.tokenize_caption import tokenize_caption


def _sequence_rng(values: list[float]):
    return iter(values).__next__


@pytest.mark.parametrize(
    ["draws", "expected"],
    [
        ([0.0, 0.0], ["2", "3", "1"]),
        ([0.99, 0.99], ["1", "2", "3"]),
        ([0.5, 0.0], ["3", "1", "2"]),
    ],
)
def test_shuffle_tokens_fisher_yates(draws: list[float], expected: list[str]):
    assert shuffle_tokens(["1", "2", "3"], _sequence_rng(draws)) == expected


def test_shuffle_tokens_does_not_modify_input():
    tokens = ["1", "2", "3"]

    shuffle_tokens(tokens, _sequence_rng([0.0, 0.0]))

    assert tokens == ["1", "2", "3"]


@pytest.mark.parametrize(["num_tokens", "expected_draws"], [(0, 0), (1, 0), (2, 1), (5, 4)])
def test_shuffle_tokens_draw_count(num_tokens: int, expected_draws: int):
    num_draws = 0

    def rng():
        nonlocal num_draws
        num_draws += 1
        return 0.3

    shuffle_tokens([str(i) for i in range(num_tokens)], rng)

    assert num_draws == expected_draws


def test_shuffle_caption_is_deterministic_with_seed():
    results = [shuffle_caption("1,2,3,4,5", seed=42) for _ in range(5)]

    assert len(set(results)) == 1
    assert sorted(tokenize_caption(results[0])) == ["1", "2", "3", "4", "5"]


def test_shuffle_caption_seeded_output_is_stable():
    """The seeded output is the same in every process, for a given seed."""
    assert shuffle_caption("1,2,3,4,5", seed=42) == "3, 1, 5, 4, 2"


@pytest.mark.parametrize("seed", range(20))
def test_shuffle_caption_is_permutation(seed: int):
    caption = "a, b, c, d, e, f"

    result = shuffle_caption(caption, seed=seed)

    assert sorted(tokenize_caption(result)) == sorted(tokenize_caption(caption))


def test_shuffle_caption_without_seed_varies():
    results = {shuffle_caption("a, b, c, d, e") for _ in range(50)}

    assert len(results) > 1


@pytest.mark.parametrize("seed", range(20))
def test_shuffle_caption_keep_tokens(seed: int):
    result_tokens = tokenize_caption(shuffle_caption("a, b, c, d, e, f", keep_tokens=2, seed=seed))

    assert result_tokens[:2] == ["a", "b"]
    assert sorted(result_tokens[2:]) == ["c", "d", "e", "f"]


@pytest.mark.parametrize("seed", range(20))
def test_shuffle_caption_keep_marker(seed: int):
    result_tokens = tokenize_caption(
        shuffle_caption("p1, p2 ||| a, b, c, d ||| s1", keep_tokens_separator="|||", seed=seed)
    )

    assert result_tokens[:2] == ["p1", "p2"]
    assert result_tokens[-1] == "s1"
    assert sorted(result_tokens[2:-1]) == ["a", "b", "c", "d"]


def test_shuffle_caption_injected_rng():
    assert shuffle_caption("1, 2, 3", rng=_sequence_rng([0.0, 0.0])) == "2, 3, 1"


@pytest.mark.parametrize("caption", ["", "  "])
def test_shuffle_caption_empty_caption(caption: str):
    assert shuffle_caption(caption, seed=0) == ""


def test_shuffle_caption_transform():
    config = CaptionTransformConfig()
    tf = ShuffleCaptionTransform(field_name="test_field", config=config, seed=3)

    in_example = {"test_field": "prompt part 1, prompt part 2, prompt part 3"}

    out_example = tf(in_example)

    assert sorted(tokenize_caption(out_example["test_field"])) == ["prompt part 1", "prompt part 2", "prompt part 3"]


def test_shuffle_caption_transform_no_delimiter():
    tf = ShuffleCaptionTransform(field_name="test_field", config=CaptionTransformConfig())

    in_example = {"test_field": "prompt part 1"}

    out_example = tf(in_example)

    assert out_example == {"test_field": "prompt part 1"}
