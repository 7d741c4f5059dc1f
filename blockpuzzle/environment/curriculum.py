# File: blockpuzzle/environment/curriculum.py
import logging
from dataclasses import asdict, dataclass
from typing import Any

from ..config import CurriculumConfig
from .shapes import get_tier_name

logger = logging.getLogger(__name__)


@dataclass
class CurriculumState:
    """Monotone curriculum level plus the rolling stats used to advance it."""

    level: int = 0
    episodes_at_level: int = 0
    clears_at_level: int = 0
    advancement_threshold: int = 3
    total_episodes: int = 0
    total_clears: int = 0


class Curriculum:
    """Advances the shape tier once enough line clears happen at a level."""

    def __init__(self, config: CurriculumConfig | None = None):
        self.config = config or CurriculumConfig()
        self.state = CurriculumState(advancement_threshold=self.config.INITIAL_THRESHOLD)

    @property
    def level(self) -> int:
        return self.state.level

    @property
    def tier_name(self) -> str:
        return get_tier_name(self.state.level)

    def update(self, lines_cleared: int, episode_score: float) -> bool:
        """Records one finished episode. Returns True if the level advanced."""
        s = self.state
        s.episodes_at_level += 1
        s.total_episodes += 1
        s.clears_at_level += max(0, int(lines_cleared))
        s.total_clears += max(0, int(lines_cleared))

        if (
            s.clears_at_level >= s.advancement_threshold
            and s.episodes_at_level >= self.config.MIN_EPISODES_AT_LEVEL
            and s.level < self.config.MAX_LEVEL
        ):
            s.level += 1
            s.episodes_at_level = 0
            s.clears_at_level = 0
            s.advancement_threshold = min(
                self.config.MAX_THRESHOLD, s.advancement_threshold + 1
            )
            logger.info(
                f"Curriculum advanced to level {s.level} ({self.tier_name}) "
                f"after score {episode_score:.0f}. Next threshold: {s.advancement_threshold}"
            )
            return True
        return False

    def copy(self) -> "Curriculum":
        new = Curriculum(self.config)
        new.state = CurriculumState(**asdict(self.state))
        return new

    def to_dict(self) -> dict[str, Any]:
        return asdict(self.state)

    def load_dict(self, data: dict[str, Any]):
        """Restores saved state. A saved level never lowers the current one."""
        restored = CurriculumState(**data)
        if restored.level < self.state.level:
            logger.warning(
                f"Ignoring saved curriculum level {restored.level} below current {self.state.level}."
            )
            return
        self.state = restored
