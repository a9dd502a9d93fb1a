import logging
import typing

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.transforms.caption_dropout_transform import apply_caption_dropout
from caption_dropout.transforms.dropout_shuffle_transform import apply_dropout_and_shuffle
from caption_dropout.transforms.rng import derive_seed, make_rng
from caption_dropout.transforms.shuffle_caption_transform import shuffle_caption

logger = logging.getLogger(__name__)

# Hard cap on the number of simulated steps. Bounds the synchronous work of a single simulate_steps(...) call.
MAX_SIMULATION_STEPS = 1000


def _apply_operation(caption: str, operation: str, params: CaptionTransformConfig, seed: typing.Optional[int]) -> str:
    if operation == "dropout":
        return apply_caption_dropout(
            caption,
            dropout_rate=params.dropout_rate,
            keep_tokens=params.keep_tokens,
            keep_tokens_separator=params.keep_tokens_separator,
            separators=params.caption_separators,
            seed=seed,
        )
    elif operation == "shuffle":
        return shuffle_caption(
            caption,
            keep_tokens=params.keep_tokens,
            keep_tokens_separator=params.keep_tokens_separator,
            separators=params.caption_separators,
            seed=seed,
        )
    elif operation == "both":
        return apply_dropout_and_shuffle(
            caption,
            dropout_rate=params.dropout_rate,
            keep_tokens=params.keep_tokens,
            keep_tokens_separator=params.keep_tokens_separator,
            separators=params.caption_separators,
            seed=seed,
        )
    else:
        raise ValueError(f"Unknown caption operation: '{operation}'. Expected one of 'dropout', 'shuffle', 'both'.")


def simulate_steps(
    caption: str,
    operation: str,
    params: CaptionTransformConfig,
    steps: int,
    seed: typing.Optional[int] = None,
) -> list[str]:
    """Apply a caption transform repeatedly, as it would be applied at successive training steps.

    Args:
        caption (str): The caption to transform.
        operation (str): One of "dropout", "shuffle" or "both".
        params (CaptionTransformConfig): The transform parameters.
        steps (int): The requested number of steps. Clamped to [1, MAX_SIMULATION_STEPS].
        seed (int, optional): If set, each step's seed is drawn from a single stream keyed by `seed`, so the whole
            sequence is reproducible. If None, every step uses fresh randomness.

    Raises:
        ValueError: If `operation` is not recognized.

    Returns:
        list[str]: The transformed caption for each step, in step order.
    """
    num_steps = min(max(steps, 1), MAX_SIMULATION_STEPS)
    if num_steps != steps:
        logger.debug(f"Requested {steps} steps, simulating {num_steps}.")

    parent_rng = make_rng(seed) if seed is not None else None

    results = []
    for _ in range(num_steps):
        step_seed = derive_seed(parent_rng) if parent_rng is not None else None
        results.append(_apply_operation(caption, operation, params, step_seed))
    return results
