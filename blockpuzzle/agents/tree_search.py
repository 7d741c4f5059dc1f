# File: blockpuzzle/agents/tree_search.py
import logging
import math

import numpy as np

from ..config import HeuristicConfig, MCTSConfig
from ..environment import BlockPuzzleEnv
from ..utils.types import ActionType, StateVector
from .base import Agent, AgentKind
from .scoring import best_immediate_action, rank_actions

logger = logging.getLogger(__name__)


class MCTSNode:
    """
    One node of the search tree. Owns an isolated environment clone holding
    the state reached by `action` from the parent.
    """

    __slots__ = (
        "parent",
        "action",
        "env",
        "reward",
        "depth",
        "children",
        "untried",
        "visit_count",
        "value_sum",
    )

    def __init__(
        self,
        env: BlockPuzzleEnv,
        parent: "MCTSNode | None" = None,
        action: ActionType | None = None,
        reward: float = 0.0,
    ):
        self.parent = parent
        self.action = action
        self.env = env
        self.reward = reward
        self.depth = 0 if parent is None else parent.depth + 1
        self.children: list[MCTSNode] = []
        self.untried: list[ActionType] | None = None
        self.visit_count = 0
        self.value_sum = 0.0

    @property
    def mean_value(self) -> float:
        if self.visit_count == 0:
            return 0.0
        return self.value_sum / self.visit_count

    @property
    def is_terminal(self) -> bool:
        return self.env.is_over()

    def ucb_score(self, exploration: float) -> float:
        if self.visit_count == 0:
            return math.inf
        assert self.parent is not None
        return self.mean_value + exploration * math.sqrt(
            math.log(self.parent.visit_count) / self.visit_count
        )

    def best_child(self, exploration: float) -> "MCTSNode":
        # max() keeps the first child on ties
        return max(self.children, key=lambda child: child.ucb_score(exploration))

    def most_visited_child(self) -> "MCTSNode | None":
        if not self.children:
            return None
        return max(self.children, key=lambda child: child.visit_count)


class TreeSearchAgent(Agent):
    """
    UCB1 Monte Carlo tree search with cheap rollouts. Every decision builds
    a fresh tree on clones of the live environment, which is never touched.
    """

    kind = AgentKind.TREE_SEARCH
    learns = False
    needs_env = True

    def __init__(
        self,
        mcts_config: MCTSConfig | None = None,
        heuristic_config: HeuristicConfig | None = None,
        seed: int | None = None,
    ):
        super().__init__()
        self.config = mcts_config or MCTSConfig()
        # Rollouts and candidate ordering use immediate scores only
        self.heuristic_config = heuristic_config or HeuristicConfig()
        self.rng = np.random.default_rng(seed)
        self.last_search_stats: dict[str, int | float] = {}

    # --- Tree phases ---

    def _candidate_actions(
        self, env: BlockPuzzleEnv, restrict_to: list[ActionType] | None = None
    ) -> list[ActionType]:
        actions = env.get_valid_actions() if restrict_to is None else list(restrict_to)
        cap = self.config.max_children
        if cap is not None and len(actions) > cap:
            actions = rank_actions(env, actions, self.heuristic_config)[:cap]
        return actions

    def _select(self, node: MCTSNode) -> tuple[MCTSNode, list[MCTSNode]]:
        path = [node]
        while (
            not node.is_terminal
            and node.depth < self.config.max_depth
            and node.untried is not None
            and not node.untried
            and node.children
        ):
            node = node.best_child(self.config.exploration_constant)
            path.append(node)
        return node, path

    def _expand(self, node: MCTSNode) -> MCTSNode:
        if node.is_terminal or node.depth >= self.config.max_depth:
            return node
        if node.untried is None:
            node.untried = self._candidate_actions(node.env)
        if not node.untried:
            return node
        action = node.untried.pop(0)
        child_env = node.env.clone()
        _, reward, _ = child_env.step(action)
        child = MCTSNode(child_env, parent=node, action=action, reward=reward)
        node.children.append(child)
        return child

    def _rollout_action(self, env: BlockPuzzleEnv, valid: list[ActionType]) -> ActionType:
        if self.config.rollout_policy == "random":
            return valid[int(self.rng.integers(len(valid)))]
        k = min(self.config.rollout_candidates, len(valid))
        picks = np.sort(self.rng.choice(len(valid), size=k, replace=False))
        return best_immediate_action(env, [valid[i] for i in picks], self.heuristic_config)

    def _rollout(self, node: MCTSNode) -> float:
        if node.is_terminal or self.config.rollout_depth == 0:
            return 0.0
        env = node.env.clone()
        total, factor = 0.0, 1.0
        for _ in range(self.config.rollout_depth):
            valid = env.get_valid_actions()
            if not valid:
                break
            _, reward, done = env.step(self._rollout_action(env, valid))
            total += factor * reward
            factor *= self.config.discount
            if done:
                break
        return total

    def _backpropagate(self, path: list[MCTSNode], rollout_value: float):
        # Return seen from the root: path rewards then the rollout, discounted per step
        value, factor = 0.0, 1.0
        for node in path[1:]:
            value += factor * node.reward
            factor *= self.config.discount
        value += factor * rollout_value
        for node in path:
            node.visit_count += 1
            node.value_sum += value

    def _should_stop(self, root: MCTSNode) -> bool:
        best = root.most_visited_child()
        return (
            best is not None
            and best.visit_count > self.config.early_stop_min_visits
            and best.mean_value > self.config.early_stop_value
        )

    def search(
        self, env: BlockPuzzleEnv, valid_actions: list[ActionType] | None = None
    ) -> MCTSNode:
        """Runs the simulation budget from a clone of `env` and returns the root."""
        root = MCTSNode(env.clone())
        root.untried = self._candidate_actions(root.env, valid_actions)
        simulations = 0
        for _ in range(self.config.num_simulations):
            leaf, path = self._select(root)
            child = self._expand(leaf)
            if child is not leaf:
                path.append(child)
            self._backpropagate(path, self._rollout(child))
            simulations += 1
            if self._should_stop(root):
                logger.debug(f"MCTS early stop after {simulations} simulations.")
                break
        self.last_search_stats = {
            "simulations": simulations,
            "root_visits": root.visit_count,
            "root_children": len(root.children),
        }
        return root

    def select_action(
        self,
        state_or_env: BlockPuzzleEnv | StateVector,
        valid_actions: list[ActionType],
    ) -> ActionType | None:
        if not isinstance(state_or_env, BlockPuzzleEnv):
            raise TypeError("TreeSearchAgent needs the environment to simulate moves.")
        if not valid_actions:
            return None
        if len(valid_actions) == 1:
            return valid_actions[0]
        root = self.search(state_or_env, valid_actions)
        best = root.most_visited_child()
        if best is None or best.action is None:
            return valid_actions[0]
        return best.action
