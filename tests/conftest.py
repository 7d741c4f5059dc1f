import numpy as np
import pytest
import torch

from blockpuzzle.config import (
    CurriculumConfig,
    DQNConfig,
    EnvConfig,
    HeuristicConfig,
    MCTSConfig,
    ModelConfig,
    PersistenceConfig,
    PolicyGradientConfig,
    RewardConfig,
)
from blockpuzzle.environment import BlockPuzzleEnv, BlockShape
from blockpuzzle.utils.types import Transition

rng = np.random.default_rng()

T, F = True, False


def make_shape(matrix: list[list[bool]], name: str = "test") -> BlockShape:
    return BlockShape.from_matrix(matrix, name=name)


SINGLE = make_shape([[T]], "single")
DOMINO_H = make_shape([[T, T]], "domino_h")
DOMINO_V = make_shape([[T], [T]], "domino_v")
SQUARE_2 = make_shape([[T, T], [T, T]], "square_2")


def empty_grid(rows: int = 9, cols: int = 9) -> list[list[bool]]:
    return [[False] * cols for _ in range(rows)]


def random_transition(env_config: EnvConfig, done: bool = False) -> Transition:
    """Transition with random state vectors and a random legal-looking action."""
    state_size = int(env_config.STATE_SIZE)
    slot = int(rng.integers(env_config.NUM_SHAPE_SLOTS))
    row = int(rng.integers(env_config.ROWS))
    col = int(rng.integers(env_config.COLS))
    next_mask = rng.random(int(env_config.ACTION_DIM)) < 0.5
    return Transition(
        state=rng.random(state_size, dtype=np.float32),
        action=slot * 1000 + row * 10 + col,
        reward=float(rng.uniform(-10, 10)),
        next_state=rng.random(state_size, dtype=np.float32),
        done=done,
        next_mask=next_mask,
    )


@pytest.fixture(scope="session")
def mock_env_config() -> EnvConfig:
    """Default 9x9 board with three tray slots."""
    return EnvConfig()


@pytest.fixture(scope="session")
def mock_reward_config() -> RewardConfig:
    return RewardConfig()


@pytest.fixture(scope="session")
def mock_curriculum_config() -> CurriculumConfig:
    return CurriculumConfig()


@pytest.fixture(scope="session")
def mock_model_config() -> ModelConfig:
    """Small networks so agent tests stay fast."""
    return ModelConfig(
        HIDDEN_DIMS=[32, 32],
        DROPOUT=0.0,
        USE_BATCH_NORM=False,
        POLICY_HIDDEN_DIMS=[32],
        POLICY_DROPOUT=0.0,
    )


@pytest.fixture(scope="session")
def mock_dqn_config() -> DQNConfig:
    return DQNConfig(
        BATCH_SIZE=8,
        BUFFER_CAPACITY=64,
        TARGET_UPDATE_FREQ=2,
        TARGET_UPDATE_MODE="hard",
        LEARNING_RATE=1e-3,
        STRATEGIC_TOP_K=5,
    )


@pytest.fixture(scope="session")
def mock_pg_config() -> PolicyGradientConfig:
    return PolicyGradientConfig(LEARNING_RATE=1e-3)


@pytest.fixture(scope="session")
def mock_mcts_config() -> MCTSConfig:
    """Low simulation budget for tests."""
    return MCTSConfig(
        num_simulations=16,
        max_depth=3,
        rollout_depth=2,
        max_children=8,
        rollout_candidates=4,
    )


@pytest.fixture(scope="session")
def mock_heuristic_config() -> HeuristicConfig:
    return HeuristicConfig(LOOKAHEAD_DEPTH=1, LOOKAHEAD_CANDIDATES=4)


@pytest.fixture
def mock_persistence_config(tmp_path) -> PersistenceConfig:
    """Persistence rooted in a per-test temporary directory."""
    return PersistenceConfig(ROOT_DATA_DIR=str(tmp_path), RUN_NAME="test_run_pytest")


@pytest.fixture
def env(
    mock_env_config: EnvConfig,
    mock_reward_config: RewardConfig,
    mock_curriculum_config: CurriculumConfig,
) -> BlockPuzzleEnv:
    """Fresh seeded environment."""
    return BlockPuzzleEnv(
        mock_env_config, mock_reward_config, mock_curriculum_config, seed=123
    )


@pytest.fixture
def device() -> torch.device:
    return torch.device("cpu")
