from pathlib import Path


def read_caption_file(caption_path: Path | str) -> str:
    """Read a caption from a text file.

    Args:
        caption_path (Path | str): Path to the caption file.

    Raises:
        ValueError: If the path does not exist, is not a file, or can not be decoded as UTF-8 text.

    Returns:
        str: The caption, with leading/trailing whitespace stripped.
    """
    caption_path = Path(caption_path)
    if not caption_path.exists():
        raise ValueError(f"'{caption_path}' does not exist.")
    if not caption_path.is_file():
        raise ValueError(f"'{caption_path}' is not a file.")

    try:
        with open(caption_path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to read caption file '{caption_path}': {e}") from e
