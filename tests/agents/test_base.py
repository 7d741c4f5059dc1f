import numpy as np
import pytest

from blockpuzzle.agents import Agent, AgentKind, EpisodeTracker
from blockpuzzle.agents.base import split_observation
from blockpuzzle.data import AgentCheckpoint
from blockpuzzle.environment import BlockPuzzleEnv


class RecordingAgent(Agent):
    """Picks the first action and remembers what it was shown."""

    kind = AgentKind.HEURISTIC

    def __init__(self, needs_env: bool):
        super().__init__()
        self.needs_env = needs_env
        self.seen: list[object] = []

    def select_action(self, state_or_env, valid_actions):
        self.seen.append(state_or_env)
        return valid_actions[0] if valid_actions else None


def test_tracker_windows():
    tracker = EpisodeTracker(window=2)
    tracker.start()
    assert tracker.in_episode
    tracker.end(100, 5.0)
    tracker.end(300, 7.0)
    tracker.end(50, -1.0)
    assert not tracker.in_episode
    assert tracker.episodes == 3
    assert tracker.best_score == 300
    assert tracker.average_score == pytest.approx(175.0)
    assert tracker.average_reward == pytest.approx(3.0)


def test_tracker_round_trip():
    tracker = EpisodeTracker(window=5)
    tracker.end(10, 1.0)
    clone = EpisodeTracker(window=5)
    clone.load_dict(tracker.to_dict())
    assert clone.to_dict() == tracker.to_dict()


def test_empty_tracker_averages():
    tracker = EpisodeTracker()
    assert tracker.average_score == 0.0
    assert tracker.average_reward == 0.0


def test_split_observation(env: BlockPuzzleEnv):
    state, same_env = split_observation(env)
    assert same_env is env
    assert np.array_equal(state, env.get_state())
    state, none_env = split_observation(env.get_state().tolist())
    assert none_env is None
    assert state.dtype == np.float32


@pytest.mark.parametrize("needs_env", [True, False], ids=["env", "state"])
def test_act_dispatches_on_capability(env: BlockPuzzleEnv, needs_env: bool):
    agent = RecordingAgent(needs_env)
    action = agent.act(env)
    assert action == env.get_valid_actions()[0]
    if needs_env:
        assert agent.seen[0] is env
    else:
        assert isinstance(agent.seen[0], np.ndarray)


def test_default_hooks_and_stats(env: BlockPuzzleEnv):
    agent = RecordingAgent(False)
    assert agent.train() is None
    agent.on_curriculum_advance()
    agent.start_episode()
    agent.end_episode(40, 2.5)
    stats = agent.get_stats()
    assert stats["kind"] == "heuristic"
    assert stats["episodes"] == 1
    assert stats["best_score"] == 40
    assert stats["epsilon"] == 0.0
    assert stats["memory_size"] == 0
    assert agent.networks() == {}


def test_checkpoint_kind_mismatch():
    agent = RecordingAgent(False)
    with pytest.raises(ValueError):
        agent.load_checkpoint(AgentCheckpoint(kind="dqn"))
    agent.load_checkpoint(agent.to_checkpoint())
