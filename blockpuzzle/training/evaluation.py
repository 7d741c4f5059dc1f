# File: blockpuzzle/training/evaluation.py
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

from ..agents import Agent, AgentKind, create_agent
from ..config import EnvConfig
from ..environment import BlockPuzzleEnv

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Per-episode outcomes of greedy play by one agent."""

    kind: str
    scores: list[int] = field(default_factory=list)
    lines_cleared: list[int] = field(default_factory=list)
    steps: list[int] = field(default_factory=list)

    @property
    def episodes(self) -> int:
        return len(self.scores)

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores)) if self.scores else 0.0

    @property
    def best_score(self) -> int:
        return max(self.scores, default=0)

    @property
    def mean_lines(self) -> float:
        return float(np.mean(self.lines_cleared)) if self.lines_cleared else 0.0

    @property
    def mean_steps(self) -> float:
        return float(np.mean(self.steps)) if self.steps else 0.0


def play_episode(
    env: BlockPuzzleEnv, agent: Agent, max_steps: int | None = None
) -> tuple[int, int, int]:
    """
    Plays one greedy episode without learning. Returns (score, lines, steps).
    The agent's greedy flag is restored afterwards.
    """
    was_greedy = agent.greedy
    agent.set_greedy(True)
    try:
        env.reset()
        steps = 0
        while not env.is_over():
            if max_steps is not None and steps >= max_steps:
                break
            action = agent.act(env)
            if action is None:
                break
            env.step(action)
            steps += 1
        return env.score, env.lines_cleared_total, steps
    finally:
        agent.set_greedy(was_greedy)


def evaluate_agent(
    agent: Agent,
    episodes: int,
    env: BlockPuzzleEnv | None = None,
    env_config: EnvConfig | None = None,
    seed: int | None = None,
    max_steps: int | None = None,
) -> EvaluationResult:
    env = env or BlockPuzzleEnv(env_config, seed=seed)
    result = EvaluationResult(kind=agent.kind.value)
    for episode in range(episodes):
        score, lines, steps = play_episode(env, agent, max_steps)
        result.scores.append(score)
        result.lines_cleared.append(lines)
        result.steps.append(steps)
        logger.debug(
            f"[{agent.kind.value}] eval episode {episode + 1}/{episodes}: score {score}, lines {lines}"
        )
    logger.info(
        f"[{agent.kind.value}] {episodes} episodes: mean score {result.mean_score:.1f}, best {result.best_score}"
    )
    return result


def compare_algorithms(
    kinds: Iterable[AgentKind | str] | None = None,
    episodes: int = 5,
    seed: int = 0,
    env_config: EnvConfig | None = None,
    max_steps: int | None = None,
) -> dict[str, EvaluationResult]:
    """
    Plays each algorithm on environments seeded identically, so every agent
    sees the same sequence of trays.
    """
    kinds = list(kinds) if kinds is not None else list(AgentKind)
    results: dict[str, EvaluationResult] = {}
    for kind in kinds:
        agent = create_agent(kind, env_config=env_config, seed=seed)
        env = BlockPuzzleEnv(env_config, seed=seed)
        try:
            results[agent.kind.value] = evaluate_agent(
                agent, episodes, env=env, max_steps=max_steps
            )
        finally:
            agent.dispose()
    return results
