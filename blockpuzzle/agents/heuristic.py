# File: blockpuzzle/agents/heuristic.py
import logging

from ..config import HeuristicConfig
from ..environment import Board, BlockPuzzleEnv, BlockShape, decode_action
from ..utils.types import ActionType, StateVector
from .base import Agent, AgentKind
from .scoring import placement_score

logger = logging.getLogger(__name__)


class HeuristicAgent(Agent):
    """
    Rule-based agent. Scores every legal placement by immediate value, then
    refines the best few candidates with a shallow beam search over the
    rest of the tray. Does not learn.
    """

    kind = AgentKind.HEURISTIC
    learns = False
    needs_env = True

    def __init__(self, heuristic_config: HeuristicConfig | None = None):
        super().__init__()
        self.config = heuristic_config or HeuristicConfig()

    def _candidates(
        self, board: Board, tray: list[BlockShape]
    ) -> list[tuple[float, Board, int]]:
        """(score, scratch board, tray slot) for every legal placement on `board`."""
        results = []
        for slot, shape in enumerate(tray):
            for row, col in board.valid_positions(shape):
                score, scratch = placement_score(board, shape, row, col, self.config)
                results.append((score, scratch, slot))
        return results

    def _future_value(self, board: Board, tray: list[BlockShape], depth: int) -> float:
        """Best discounted value reachable by placing up to `depth` more shapes."""
        if depth <= 0 or not tray:
            return 0.0
        candidates = self._candidates(board, tray)
        if not candidates:
            return 0.0
        candidates.sort(key=lambda item: item[0], reverse=True)
        best = float("-inf")
        for score, scratch, slot in candidates[: self.config.LOOKAHEAD_BREADTH]:
            remaining = tray[:slot] + tray[slot + 1 :]
            value = score + self.config.LOOKAHEAD_DISCOUNT * self._future_value(
                scratch, remaining, depth - 1
            )
            best = max(best, value)
        return best

    def evaluate(self, env: BlockPuzzleEnv, actions: list[ActionType]) -> list[float]:
        """Total score per action, aligned with `actions`."""
        immediate: list[tuple[float, Board, int]] = []
        for action in actions:
            slot, row, col = decode_action(action)
            score, scratch = placement_score(
                env.board, env.tray[slot], row, col, self.config
            )
            immediate.append((score, scratch, slot))

        totals = [score for score, _, _ in immediate]
        if self.config.LOOKAHEAD_DEPTH <= 0 or self.config.LOOKAHEAD_WEIGHT <= 0:
            return totals
        order = sorted(range(len(actions)), key=lambda i: immediate[i][0], reverse=True)
        for i in order[: self.config.LOOKAHEAD_CANDIDATES]:
            _, scratch, slot = immediate[i]
            remaining = env.tray[:slot] + env.tray[slot + 1 :]
            future = self._future_value(scratch, remaining, self.config.LOOKAHEAD_DEPTH)
            totals[i] += (
                self.config.LOOKAHEAD_WEIGHT * self.config.LOOKAHEAD_DISCOUNT * future
            )
        return totals

    def select_action(
        self,
        state_or_env: BlockPuzzleEnv | StateVector,
        valid_actions: list[ActionType],
    ) -> ActionType | None:
        if not isinstance(state_or_env, BlockPuzzleEnv):
            raise TypeError("HeuristicAgent needs the environment to simulate placements.")
        if not valid_actions:
            return None
        scores = self.evaluate(state_or_env, valid_actions)
        best_action, best_score = valid_actions[0], scores[0]
        for action, score in zip(valid_actions[1:], scores[1:], strict=True):
            # Strict comparison keeps the first-seen action on ties
            if score > best_score:
                best_action, best_score = action, score
        logger.debug(f"Heuristic picked {best_action} with score {best_score:.1f}")
        return best_action

