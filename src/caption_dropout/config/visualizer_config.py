from typing import Literal, Optional

from pydantic import field_validator

from caption_dropout.config.caption_transform_config import CaptionTransformConfig
from caption_dropout.simulation.step_simulator import MAX_SIMULATION_STEPS

CaptionOperation = Literal["dropout", "shuffle", "both"]


class VisualizerConfig(CaptionTransformConfig):
    """The full configuration of a caption dropout/shuffle simulation run."""

    type: Literal["CAPTION_DROPOUT_SIMULATION"] = "CAPTION_DROPOUT_SIMULATION"

    operation: CaptionOperation = "dropout"
    """The transform to simulate:

    - `dropout`: randomly drop flexible tokens.
    - `shuffle`: randomly re-order flexible tokens.
    - `both`: dropout followed by shuffle.
    """

    step_count: int = 50
    """The number of simulated steps. Clamped to the range [1, 1000].
    """

    seed: Optional[int] = None
    """The seed that determines every step of the simulation. Only used if `use_seed` is True.
    """

    use_seed: bool = False
    """If True, the simulation is reproducible from `seed`. If False, every run draws fresh randomness.
    """

    use_wolf_captions: bool = False
    """If True, sentence boundaries in free-text captions are rewritten to end with `".,"` before tokenization, and
    `".,"` is added to the caption separators.
    """

    @field_validator("step_count")
    @classmethod
    def _clamp_step_count(cls, v: int) -> int:
        return min(max(v, 1), MAX_SIMULATION_STEPS)

    @property
    def effective_seed(self) -> int | None:
        """The seed to pass to the transforms, or None if seeding is disabled."""
        if self.use_seed:
            return self.seed
        return None
