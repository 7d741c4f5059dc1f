# File: blockpuzzle/data/schemas.py
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

arbitrary_types_config = ConfigDict(arbitrary_types_allowed=True)


class AgentCheckpoint(BaseModel):
    """Pydantic model defining the structure of a saved agent blob."""

    model_config = arbitrary_types_config

    kind: str
    # Named torch state dicts, e.g. {"online": ..., "target": ...}
    network_states: dict[str, Any] = Field(default_factory=dict)
    optimizer_states: dict[str, Any] = Field(default_factory=dict)
    # Epsilon, step counters, episode tracker window, etc.
    scalars: dict[str, Any] = Field(default_factory=dict)
    curriculum_state: dict[str, Any] | None = None
    saved_at: float = Field(default_factory=time.time)


AgentCheckpoint.model_rebuild(force=True)
