# File: blockpuzzle/data/store.py
import logging
import re
from pathlib import Path

import torch
from pydantic import ValidationError

from ..config import PersistenceConfig
from .schemas import AgentCheckpoint

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AgentStore:
    """
    Keyed storage for agent checkpoints. Each key maps to one opaque
    torch-serialized file under the persistence store directory.
    """

    def __init__(self, persist_config: PersistenceConfig | None = None):
        self.persist_config = persist_config or PersistenceConfig()
        self.root = self.persist_config.get_store_dir()

    @staticmethod
    def sanitize_key(key: str) -> str:
        cleaned = _UNSAFE_KEY_CHARS.sub("_", key.strip()).strip("._")
        if not cleaned:
            raise ValueError(f"Invalid store key: {key!r}")
        return cleaned

    def path_for(self, key: str) -> Path:
        return self.root / f"{self.sanitize_key(key)}{self.persist_config.CHECKPOINT_SUFFIX}"

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def save(self, key: str, checkpoint: AgentCheckpoint) -> Path:
        """Writes atomically: a temp file is renamed over the target."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        torch.save(checkpoint.model_dump(), tmp_path)
        tmp_path.replace(path)
        logger.info(f"Saved '{checkpoint.kind}' checkpoint to {path}")
        return path

    def load(self, key: str) -> AgentCheckpoint | None:
        path = self.path_for(key)
        if not path.is_file():
            logger.info(f"No checkpoint stored under key '{key}'.")
            return None
        try:
            raw = torch.load(path, map_location="cpu", weights_only=False)
            checkpoint = AgentCheckpoint.model_validate(raw)
            logger.info(f"Loaded '{checkpoint.kind}' checkpoint from {path}")
            return checkpoint
        except ValidationError as e:
            logger.error(f"Checkpoint at {path} has an invalid structure: {e}")
        except Exception as e:
            logger.error(f"Error loading checkpoint from {path}: {e}", exc_info=True)
        return None

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted checkpoint {path}")
        return True

    def list_keys(self) -> list[str]:
        if not self.root.is_dir():
            return []
        suffix = self.persist_config.CHECKPOINT_SUFFIX
        return sorted(p.name[: -len(suffix)] for p in self.root.glob(f"*{suffix}"))
