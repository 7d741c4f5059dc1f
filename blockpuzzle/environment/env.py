# File: blockpuzzle/environment/env.py
import copy
import logging
from collections.abc import Sequence

import numpy as np

from ..config import CurriculumConfig, EnvConfig, RewardConfig
from ..utils.types import ActionType, StepInfo
from .actions import action_to_index, decode_action, encode_action
from .board import Board, hard_mode_mask, line_clear_score
from .curriculum import Curriculum
from .features import encode_state
from .reward import SpatialFeatures, analyze_spatial, compute_reward, spatial_reward
from .shapes import FULL_CATALOG, BlockShape, generate_tray, get_tier_shapes

logger = logging.getLogger(__name__)


class BlockPuzzleEnv:
    """
    Block placement simulator.

    Each step places one tray shape, clears complete rows/columns/boxes,
    refills the tray once it is empty and reports whether any remaining
    shape still fits. Illegal actions end the episode with a fixed penalty
    instead of raising.
    """

    def __init__(
        self,
        env_config: EnvConfig | None = None,
        reward_config: RewardConfig | None = None,
        curriculum_config: CurriculumConfig | None = None,
        seed: int | None = None,
        use_curriculum: bool = True,
    ):
        self.env_config = env_config or EnvConfig()
        self.reward_config = reward_config or RewardConfig()
        self.curriculum = Curriculum(curriculum_config)
        self.use_curriculum = use_curriculum
        self._rng = np.random.default_rng(seed)

        self.hard_mode = self.env_config.HARD_MODE
        self.board = self._new_board()
        self.tray: list[BlockShape] = []
        self.score = 0
        self.steps = 0
        self.moves_since_clear = 0
        self.lines_cleared_total = 0
        self.last_step_info: StepInfo | None = None
        self._over = False
        self._spatial: SpatialFeatures | None = None
        self._valid_cache: list[ActionType] | None = None
        self.reset()

    # --- Construction helpers ---

    def _new_board(self) -> Board:
        cfg = self.env_config
        blocked = (
            hard_mode_mask(cfg.ROWS, cfg.COLS, cfg.BOX_SIZE) if self.hard_mode else None
        )
        return Board(cfg.ROWS, cfg.COLS, cfg.BOX_SIZE, blocked)

    def available_shapes(self) -> tuple[BlockShape, ...]:
        """Shapes the tray is currently drawn from."""
        if self.env_config.SHAPE_SET == "full_catalog":
            return FULL_CATALOG
        if not self.use_curriculum:
            return get_tier_shapes(self.curriculum.config.MAX_LEVEL)
        return get_tier_shapes(self.curriculum.level)

    def _refill_tray(self):
        self.tray = generate_tray(
            self._rng, self.available_shapes(), self.env_config.NUM_SHAPE_SLOTS
        )

    def _invalidate(self):
        self._spatial = None
        self._valid_cache = None

    # --- Properties ---

    @property
    def state_size(self) -> int:
        return int(self.env_config.STATE_SIZE)

    @property
    def action_dim(self) -> int:
        return int(self.env_config.ACTION_DIM)

    @property
    def level(self) -> int:
        return self.curriculum.level

    def is_over(self) -> bool:
        return self._over

    # --- Core API ---

    def reset(self) -> np.ndarray:
        self.board = self._new_board()
        self._refill_tray()
        self.score = 0
        self.steps = 0
        self.moves_since_clear = 0
        self.lines_cleared_total = 0
        self.last_step_info = None
        self._invalidate()
        self._over = self.board.is_game_over(self.tray)
        return self.get_state()

    def get_state(self) -> np.ndarray:
        return encode_state(
            self.board,
            self.tray,
            self.score,
            self.moves_since_clear,
            self.curriculum.level,
            self.env_config,
            max_level=self.curriculum.config.MAX_LEVEL,
        )

    def get_valid_actions(self) -> list[ActionType]:
        """Legal actions ordered by tray slot, then row, then column."""
        if self._over:
            return []
        if self._valid_cache is None:
            self._valid_cache = [
                encode_action(b, r, c)
                for b, shape in enumerate(self.tray)
                for r, c in self.board.valid_positions(shape)
            ]
        return list(self._valid_cache)

    def action_mask(self) -> np.ndarray:
        """Boolean validity mask over dense action indices."""
        mask = np.zeros(self.action_dim, dtype=bool)
        rows, cols = self.env_config.ROWS, self.env_config.COLS
        for action in self.get_valid_actions():
            mask[action_to_index(action, rows, cols)] = True
        return mask

    @staticmethod
    def decode_action(action: ActionType) -> tuple[int, int, int]:
        return decode_action(action)

    def is_valid_action(self, action: ActionType) -> bool:
        if self._over or action < 0:
            return False
        block_index, row, col = decode_action(action)
        if block_index >= len(self.tray):
            return False
        return self.board.can_place(self.tray[block_index], row, col)

    def step(self, action: ActionType) -> tuple[np.ndarray, float, bool]:
        if not self.is_valid_action(action):
            return self._reject(action)

        block_index, row, col = decode_action(action)
        shape = self.tray[block_index]
        rows, cols = self.env_config.ROWS, self.env_config.COLS

        before = self._spatial or analyze_spatial(self.board, self.reward_config)
        placed = self.board.place(shape, row, col)
        lines = self.board.clear_completed_lines()
        gained = line_clear_score(lines)
        self.score += gained
        self.tray.pop(block_index)
        if not self.tray:
            self._refill_tray()
        self.steps += 1
        if lines > 0:
            self.lines_cleared_total += lines
            self.moves_since_clear = 0
        else:
            self.moves_since_clear += 1

        self._valid_cache = None
        game_over = self.board.is_game_over(self.tray)
        truncated = self.steps >= self.env_config.MAX_STEPS_PER_EPISODE
        self._over = game_over or truncated

        after = analyze_spatial(self.board, self.reward_config)
        self._spatial = after
        spatial = spatial_reward(before, after, placed, rows, cols, self.reward_config)
        reward, terms = compute_reward(
            lines, shape.size, spatial, game_over, self.curriculum.level, self.reward_config
        )

        self.last_step_info = {
            "lines_cleared": lines,
            "score_gained": gained,
            "cells_placed": shape.size,
            "invalid": False,
            "reward_terms": terms,
        }
        if lines > 0:
            logger.debug(f"Cleared {lines} unit(s) at step {self.steps}, reward {reward:.1f}")
        return self.get_state(), reward, self._over

    def _reject(self, action: ActionType) -> tuple[np.ndarray, float, bool]:
        penalty = self.reward_config.INVALID_ACTION_PENALTY
        logger.debug(f"Illegal action {action}; ending episode with penalty {penalty}.")
        self._over = True
        self._valid_cache = None
        self.last_step_info = {
            "lines_cleared": 0,
            "score_gained": 0,
            "cells_placed": 0,
            "invalid": True,
            "reward_terms": {"invalid": penalty},
        }
        return self.get_state(), penalty, True

    # --- Curriculum ---

    def update_curriculum(
        self, lines_cleared_this_episode: int, episode_score: float
    ) -> bool:
        return self.curriculum.update(lines_cleared_this_episode, episode_score)

    # --- Cloning & external sync ---

    def clone(self) -> "BlockPuzzleEnv":
        """Fully independent copy, including the tray RNG."""
        new = BlockPuzzleEnv.__new__(BlockPuzzleEnv)
        new.env_config = self.env_config
        new.reward_config = self.reward_config
        new.curriculum = self.curriculum.copy()
        new.use_curriculum = self.use_curriculum
        new._rng = copy.deepcopy(self._rng)
        new.hard_mode = self.hard_mode
        new.board = self.board.copy()
        new.tray = list(self.tray)
        new.score = self.score
        new.steps = self.steps
        new.moves_since_clear = self.moves_since_clear
        new.lines_cleared_total = self.lines_cleared_total
        new.last_step_info = copy.deepcopy(self.last_step_info)
        new._over = self._over
        new._spatial = self._spatial
        new._valid_cache = None if self._valid_cache is None else list(self._valid_cache)
        return new

    def set_state(
        self,
        grid: Sequence[Sequence[bool | int]] | np.ndarray,
        tray: Sequence[BlockShape | Sequence[Sequence[bool | int]]],
        score: int = 0,
        difficulty: str = "normal",
    ) -> np.ndarray:
        """
        Synchronizes the simulator to an external game. Grids of the wrong size
        are zero-padded or cropped; difficulty "hard" blocks the central box.
        """
        cfg = self.env_config
        self.hard_mode = difficulty == "hard"
        blocked = (
            hard_mode_mask(cfg.ROWS, cfg.COLS, cfg.BOX_SIZE) if self.hard_mode else None
        )
        self.board = Board.from_grid(grid, cfg.ROWS, cfg.COLS, cfg.BOX_SIZE, blocked)
        shapes = [
            s if isinstance(s, BlockShape) else BlockShape.from_matrix(s) for s in tray
        ]
        if len(shapes) > cfg.NUM_SHAPE_SLOTS:
            logger.warning(
                f"Tray has {len(shapes)} shapes; keeping the first {cfg.NUM_SHAPE_SLOTS}."
            )
        self.tray = shapes[: cfg.NUM_SHAPE_SLOTS]
        if not self.tray:
            self._refill_tray()
        self.score = int(score)
        self.steps = 0
        self.moves_since_clear = 0
        self.lines_cleared_total = 0
        self.last_step_info = None
        self._invalidate()
        self._over = self.board.is_game_over(self.tray)
        return self.get_state()
