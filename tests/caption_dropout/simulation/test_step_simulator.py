import pytest

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.simulation.step_simulator import MAX_SIMULATION_STEPS, simulate_steps
from caption_dropout.transforms.caption_dropout_transform import apply_caption_dropout
from caption_dropout.transforms.rng import derive_seed, make_rng
from caption_dropout.transforms.tokenize_caption import tokenize_caption


@pytest.mark.parametrize(
    ["steps", "expected_len"],
    [
        (1, 1),
        (50, 50),
        (MAX_SIMULATION_STEPS, MAX_SIMULATION_STEPS),
        (5000, MAX_SIMULATION_STEPS),
        (0, 1),
        (-5, 1),
    ],
)
def test_simulate_steps_count(steps: int, expected_len: int):
    params = CaptionTransformConfig(dropout_rate=0.5)

    results = simulate_steps("a, b, c, d", "dropout", params, steps, seed=0)

    assert len(results) == expected_len


@pytest.mark.parametrize("operation", ["dropout", "shuffle", "both"])
def test_simulate_steps_is_deterministic_with_seed(operation: str):
    params = CaptionTransformConfig(dropout_rate=0.3)

    results_1 = simulate_steps("a, b, c, d, e, f", operation, params, 20, seed=42)
    results_2 = simulate_steps("a, b, c, d, e, f", operation, params, 20, seed=42)

    assert results_1 == results_2


@pytest.mark.parametrize("operation", ["dropout", "shuffle", "both"])
def test_simulate_steps_steps_vary(operation: str):
    params = CaptionTransformConfig(dropout_rate=0.3)

    results = simulate_steps("a, b, c, d, e, f", operation, params, 100, seed=42)

    assert len(set(results)) > 1


def test_simulate_steps_step_seeds_are_drawn_from_one_stream():
    caption = "a, b, c, d, e, f"
    params = CaptionTransformConfig(dropout_rate=0.5, keep_tokens=1)
    parent_rng = make_rng(7)
    expected = [
        apply_caption_dropout(caption, dropout_rate=0.5, keep_tokens=1, seed=derive_seed(parent_rng)) for _ in range(3)
    ]

    assert simulate_steps(caption, "dropout", params, 3, seed=7) == expected


def test_simulate_steps_without_seed_varies():
    params = CaptionTransformConfig()

    results = simulate_steps("a, b, c, d, e", "shuffle", params, 50)

    assert len(set(results)) > 1


@pytest.mark.parametrize("operation", ["dropout", "shuffle", "both"])
def test_simulate_steps_keep_tokens(operation: str):
    params = CaptionTransformConfig(dropout_rate=0.5, keep_tokens=2)

    results = simulate_steps("a, b, c, d, e, f", operation, params, 50, seed=1)

    for result in results:
        assert tokenize_caption(result)[:2] == ["a", "b"]


def test_simulate_steps_shuffle_permutation():
    params = CaptionTransformConfig()

    results = simulate_steps("1,2,3,4,5", "shuffle", params, 20, seed=42)

    for result in results:
        assert sorted(tokenize_caption(result)) == ["1", "2", "3", "4", "5"]


def test_simulate_steps_unknown_operation():
    with pytest.raises(ValueError, match="Unknown caption operation"):
        simulate_steps("a, b", "invert", CaptionTransformConfig(), 10, seed=0)


def test_simulate_steps_empty_caption():
    assert simulate_steps("", "both", CaptionTransformConfig(dropout_rate=0.5), 3, seed=0) == ["", "", ""]
