import logging
from dataclasses import dataclass

from caption_dropout.config.visualizer_config import VisualizerConfig
from caption_dropout.simulation.caption_stats import TokenStats, compute_token_stats
from caption_dropout.simulation.step_simulator import simulate_steps
from caption_dropout.transforms.keep_tokens import resolve_keep_tokens
from caption_dropout.transforms.tokenize_caption import join_tokens, tokenize_caption
from caption_dropout.transforms.wolf_caption_transform import (
    TAG_SEPARATOR_DEFAULT,
    rewrite_sentence_boundaries,
    with_wolf_separator,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    caption: str
    """The caption that was transformed, i.e. after the Wolf caption rewrite if it is enabled."""

    reference_caption: str
    """The untransformed caption as the transforms tokenize it, i.e. with the keep-tokens marker removed. Statistics are
    computed relative to this caption.
    """

    separators: list[str]
    """The effective caption separators. Includes the Wolf caption separator if it is enabled."""

    results: list[str]
    """The transformed caption at each simulated step."""

    stats: TokenStats


def run_simulation(caption: str, config: VisualizerConfig) -> SimulationResult:
    """Run the caption transform pipeline described by `config` on `caption`.

    The caption is (optionally) rewritten with Wolf caption sentence boundaries, then transformed `config.step_count`
    times, and summary statistics are computed over the results.
    """
    separators = list(config.caption_separators)
    if config.use_wolf_captions:
        # The keep-tokens prefix is left untouched by the rewrite.
        caption = rewrite_sentence_boundaries(caption, config.keep_tokens_separator or TAG_SEPARATOR_DEFAULT)
        separators = with_wolf_separator(separators)

    params = config.model_copy(update={"caption_separators": separators})
    seed = config.effective_seed
    logger.debug(
        f"Simulating {config.step_count} '{config.operation}' steps with separators={separators}, seed={seed}."
    )
    results = simulate_steps(caption, config.operation, params, config.step_count, seed=seed)

    tokens = tokenize_caption(caption, separators)
    keep_split = resolve_keep_tokens(caption, tokens, config.keep_tokens, config.keep_tokens_separator, separators)
    reference_caption = join_tokens(keep_split.join(keep_split.flexible), separators)

    return SimulationResult(
        caption=caption,
        reference_caption=reference_caption,
        separators=separators,
        results=results,
        stats=compute_token_stats(reference_caption, results, separators),
    )
