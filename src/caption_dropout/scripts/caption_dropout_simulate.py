import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

import yaml
from pydantic import TypeAdapter

from caption_dropout._shared.utils.caption_files import read_caption_file
from caption_dropout._shared.utils.logging import initialize_logging
from caption_dropout._shared.utils.step_captions import save_step_captions
from caption_dropout.config.visualizer_config import VisualizerConfig
from caption_dropout.simulation.caption_stats import position_retention, token_retention_frequencies
from caption_dropout.simulation.run_simulation import run_simulation


def parse_args(args: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Simulate caption dropout/shuffle over many training steps.")
    parser.add_argument(
        "-c",
        "--cfg-file",
        type=Path,
        required=True,
        help="Path to the YAML simulation config file.",
    )
    caption_group = parser.add_mutually_exclusive_group(required=True)
    caption_group.add_argument("--caption", type=str, help="The caption to transform.")
    caption_group.add_argument("--caption-file", type=Path, help="Path to a .txt file containing the caption.")
    parser.add_argument(
        "-o",
        "--out",
        type=Path,
        default=None,
        help="Optional path to a .jsonl file. Each simulated step is written as one line.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(args)


def load_config(cfg_file: Path) -> VisualizerConfig:
    """Load and validate a YAML simulation config file."""
    with open(cfg_file, "r") as f:
        cfg = yaml.safe_load(f) or {}

    config_adapter: TypeAdapter[VisualizerConfig] = TypeAdapter(VisualizerConfig)
    return config_adapter.validate_python(cfg)


def main(args: list[str] | None = None):
    parsed_args = parse_args(args)
    logger = initialize_logging(__name__, verbose=parsed_args.verbose)

    config = load_config(parsed_args.cfg_file)
    logger.info(f"Configuration:\n{json.dumps(config.model_dump(), indent=2, default=str)}")

    if parsed_args.caption_file is not None:
        try:
            caption = read_caption_file(parsed_args.caption_file)
        except ValueError as e:
            logger.error(f"Failed to load caption file: {e}")
            sys.exit(1)
    else:
        caption = parsed_args.caption

    result = run_simulation(caption, config)

    for step, step_caption in enumerate(result.results[:10]):
        logger.info(f"Step {step}: {step_caption}")
    if len(result.results) > 10:
        logger.info(f"... ({len(result.results) - 10} more steps)")

    logger.info(f"Stats: {json.dumps(asdict(result.stats), indent=2)}")
    frequencies = token_retention_frequencies(result.reference_caption, result.results, result.separators)
    for token, percent in frequencies.items():
        logger.info(f"  {percent:6.1f}%  {token}")
    positions = position_retention(result.reference_caption, result.results, result.separators)
    for label, percent in zip(positions.labels, positions.retention_percent):
        logger.info(f"  {label}: {percent:.1f}%")

    if parsed_args.out is not None:
        save_step_captions(result.results, parsed_args.out)
        logger.info(f"Saved {len(result.results)} steps to '{parsed_args.out}'.")


if __name__ == "__main__":
    main()
