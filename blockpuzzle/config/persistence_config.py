# File: blockpuzzle/config/persistence_config.py
from pathlib import Path

from pydantic import BaseModel, Field, computed_field


class PersistenceConfig(BaseModel):
    """Where runs, logs, MLflow data and stored agents live on disk."""

    # Root directory for all persistent data, relative to the working directory.
    ROOT_DATA_DIR: str = Field(default=".blockpuzzle_data")
    RUNS_DIR_NAME: str = Field(default="runs")
    MLFLOW_DIR_NAME: str = Field(default="mlruns")
    # Agent blobs shared across runs, addressed by key
    STORE_DIR_NAME: str = Field(default="agents")

    LOG_DIR_NAME: str = Field(default="logs")
    CONFIG_FILENAME: str = Field(default="configs.json")
    CHECKPOINT_SUFFIX: str = Field(default=".pt")

    RUN_NAME: str = Field(default="default_run")

    def _get_absolute_root(self) -> Path:
        """Resolves ROOT_DATA_DIR to an absolute path relative to the working directory."""
        return (Path.cwd() / self.ROOT_DATA_DIR).resolve()

    @computed_field  # type: ignore[misc]
    @property
    def MLFLOW_TRACKING_URI(self) -> str:
        """file:// URI of the local MLflow store."""
        return self.get_mlflow_abs_path().as_uri()

    def get_runs_root_dir(self) -> Path:
        return self._get_absolute_root() / self.RUNS_DIR_NAME

    def get_run_base_dir(self, run_name: str | None = None) -> Path:
        """Directory of `run_name`, or of the configured run."""
        return self.get_runs_root_dir() / (run_name or self.RUN_NAME)

    def get_mlflow_abs_path(self) -> Path:
        """Absolute MLflow store directory."""
        return self._get_absolute_root() / self.MLFLOW_DIR_NAME

    def get_store_dir(self) -> Path:
        """Absolute directory of keyed agent blobs."""
        return self._get_absolute_root() / self.STORE_DIR_NAME


PersistenceConfig.model_rebuild(force=True)
