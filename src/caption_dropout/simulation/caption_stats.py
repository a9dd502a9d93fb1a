import typing
from dataclasses import dataclass

import numpy as np

from caption_dropout.transforms.tokenize_caption import tokenize_caption

# The maximum number of positional buckets reported by position_retention(...).
MAX_POSITION_BUCKETS = 10


@dataclass
class TokenStats:
    original_count: int
    """The number of tokens in the original caption."""

    average_count: float
    """The mean number of tokens per simulated step."""

    retention_percent: float
    """`average_count` as a percentage of `original_count`."""

    unique_results: int
    """The number of distinct simulated captions."""

    uniqueness_percent: float
    """`unique_results` as a percentage of the number of steps."""


@dataclass
class PositionRetention:
    labels: list[str]
    """A label per bucket, e.g. "Position 1" or "Positions 3-4" (1-based)."""

    retention_percent: np.ndarray
    """Shape=(num_buckets,). The percentage of original tokens in each bucket that survived, over all steps."""


@dataclass
class LengthRetention:
    length: int
    total_count: int
    """The number of original tokens with this length."""

    retained_count: int
    """The number of times a token with this length survived, summed over all steps."""

    retention_percent: float


@dataclass
class BeforeAfterComparison:
    kept_tokens: list[str]
    dropped_tokens: list[str]
    new_tokens: list[str]
    """Tokens in the result that are not in the original caption."""

    kept_percent: float
    dropped_percent: float


def _percent(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100.0


def count_tokens(caption: str, separators: typing.Optional[typing.Sequence[str]] = None) -> int:
    return len(tokenize_caption(caption, separators))


def compute_token_stats(
    caption: str, results: list[str], separators: typing.Optional[typing.Sequence[str]] = None
) -> TokenStats:
    """Compute summary statistics over a list of simulated captions."""
    original_count = count_tokens(caption, separators)
    counts = np.array([count_tokens(r, separators) for r in results], dtype=np.float64)
    average_count = float(counts.mean()) if len(results) > 0 else 0.0
    unique_results = len(set(results))
    return TokenStats(
        original_count=original_count,
        average_count=average_count,
        retention_percent=_percent(average_count, original_count),
        unique_results=unique_results,
        uniqueness_percent=_percent(unique_results, len(results)),
    )


def token_occurrence_matrix(
    caption: str, results: list[str], separators: typing.Optional[typing.Sequence[str]] = None
) -> np.ndarray:
    """Returns a bool matrix with shape (len(results), num_original_tokens). Entry [i, j] is True if the j-th token of
    the original caption occurs in the i-th result.
    """
    tokens = tokenize_caption(caption, separators)
    matrix = np.zeros((len(results), len(tokens)), dtype=bool)
    for i, result in enumerate(results):
        result_tokens = set(tokenize_caption(result, separators))
        matrix[i] = [t in result_tokens for t in tokens]
    return matrix


def token_retention_frequencies(
    caption: str, results: list[str], separators: typing.Optional[typing.Sequence[str]] = None
) -> dict[str, float]:
    """Returns the percentage of results that contain each token of the original caption."""
    tokens = tokenize_caption(caption, separators)
    occurrences = token_occurrence_matrix(caption, results, separators)
    frequencies: dict[str, float] = {}
    for j, token in enumerate(tokens):
        frequencies[token] = _percent(int(occurrences[:, j].sum()), len(results))
    return frequencies


def position_retention(
    caption: str, results: list[str], separators: typing.Optional[typing.Sequence[str]] = None
) -> PositionRetention:
    """Group the original tokens into up to MAX_POSITION_BUCKETS buckets by position, and report the retention rate of
    each bucket. Useful to check that keep-tokens protect the start of a caption.
    """
    occurrences = token_occurrence_matrix(caption, results, separators)
    num_tokens = occurrences.shape[1]
    if num_tokens == 0:
        return PositionRetention(labels=[], retention_percent=np.zeros(0))

    num_buckets = min(MAX_POSITION_BUCKETS, num_tokens)
    bucket_size = num_tokens / num_buckets
    bucket_idxs = np.minimum(np.floor(np.arange(num_tokens) / bucket_size).astype(int), num_buckets - 1)

    totals = np.bincount(bucket_idxs, minlength=num_buckets) * len(results)
    retained = np.bincount(bucket_idxs, weights=occurrences.sum(axis=0), minlength=num_buckets)
    retention_percent = np.divide(
        retained * 100.0, totals, out=np.zeros(num_buckets, dtype=np.float64), where=totals > 0
    )

    labels = []
    for i in range(num_buckets):
        # Round half up.
        start = int(np.floor(i * bucket_size + 0.5)) + 1
        end = int(np.floor((i + 1) * bucket_size + 0.5))
        labels.append(f"Position {start}" if start == end else f"Positions {start}-{end}")
    return PositionRetention(labels=labels, retention_percent=retention_percent)


def length_retention(
    caption: str, results: list[str], separators: typing.Optional[typing.Sequence[str]] = None
) -> list[LengthRetention]:
    """Report the retention rate of the original tokens grouped by token length (in characters), sorted by length."""
    tokens = tokenize_caption(caption, separators)
    occurrences = token_occurrence_matrix(caption, results, separators)
    retained_per_token = occurrences.sum(axis=0)

    by_length: dict[int, LengthRetention] = {}
    for token, retained in zip(tokens, retained_per_token):
        entry = by_length.setdefault(len(token), LengthRetention(len(token), 0, 0, 0.0))
        entry.total_count += 1
        entry.retained_count += int(retained)

    for entry in by_length.values():
        entry.retention_percent = _percent(entry.retained_count, entry.total_count * len(results))
    return sorted(by_length.values(), key=lambda e: e.length)


def jaccard_similarity(tokens_1: typing.Iterable[str], tokens_2: typing.Iterable[str]) -> float:
    """The Jaccard index of two token sets. Two empty sets are considered identical."""
    set_1 = set(tokens_1)
    set_2 = set(tokens_2)
    union = set_1 | set_2
    if len(union) == 0:
        return 1.0
    return len(set_1 & set_2) / len(union)


def jaccard_similarity_matrix(
    results: list[str], separators: typing.Optional[typing.Sequence[str]] = None, max_results: int = 10
) -> np.ndarray:
    """Pairwise Jaccard similarity of the token sets of the first `max_results` results."""
    tokenized = [tokenize_caption(r, separators) for r in results[: max(max_results, 0)]]
    matrix = np.ones((len(tokenized), len(tokenized)), dtype=np.float64)
    for i in range(len(tokenized)):
        for j in range(i + 1, len(tokenized)):
            matrix[i, j] = matrix[j, i] = jaccard_similarity(tokenized[i], tokenized[j])
    return matrix


def compare_before_after(
    caption: str, result: str, separators: typing.Optional[typing.Sequence[str]] = None
) -> BeforeAfterComparison:
    """Categorize the tokens of the original caption as kept or dropped in `result`."""
    original_tokens = tokenize_caption(caption, separators)
    result_tokens = tokenize_caption(result, separators)
    result_token_set = set(result_tokens)
    original_token_set = set(original_tokens)

    kept_tokens = [t for t in original_tokens if t in result_token_set]
    dropped_tokens = [t for t in original_tokens if t not in result_token_set]
    new_tokens = [t for t in result_tokens if t not in original_token_set]
    return BeforeAfterComparison(
        kept_tokens=kept_tokens,
        dropped_tokens=dropped_tokens,
        new_tokens=new_tokens,
        kept_percent=_percent(len(kept_tokens), len(original_tokens)),
        dropped_percent=_percent(len(dropped_tokens), len(original_tokens)),
    )
