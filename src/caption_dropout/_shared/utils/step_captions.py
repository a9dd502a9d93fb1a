import json
from pathlib import Path


def save_step_captions(captions: list[str], jsonl_path: Path | str) -> None:
    """Save simulated step captions to a JSONL file, one `{"step": <int>, "caption": <str>}` record per line."""
    with open(jsonl_path, "w", encoding="utf-8") as f:
        for step, caption in enumerate(captions):
            f.write(json.dumps({"step": step, "caption": caption}, ensure_ascii=False) + "\n")


def load_step_captions(jsonl_path: Path | str) -> list[str]:
    """Load the step captions written by `save_step_captions(...)`.

    Raises:
        ValueError: If a line is not a step record, or if the steps are not numbered 0, 1, 2, ... in order.
    """
    captions = []
    with open(jsonl_path, encoding="utf-8") as f:
        for line_num, line in enumerate(f, start=1):
            if line.strip() == "":
                continue
            record = json.loads(line)
            if not isinstance(record, dict) or not isinstance(record.get("caption"), str):
                raise ValueError(f"Line {line_num} of '{jsonl_path}' is not a step caption record.")
            if record.get("step") != len(captions):
                raise ValueError(
                    f"Line {line_num} of '{jsonl_path}' has step {record.get('step')}, expected {len(captions)}."
                )
            captions.append(record["caption"])
    return captions
