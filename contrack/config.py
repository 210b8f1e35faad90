"""contrack configuration: runtime settings and the TOML repository registry."""

from pathlib import Path
from typing import Optional

import toml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from contrack.exceptions import NotFoundError, StorageError

# Pick up CONTRACK_* overrides from a .env in the working directory
load_dotenv(find_dotenv(usecwd=True))


class Settings(BaseSettings):
    """Runtime settings, overridable through CONTRACK_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="CONTRACK_")

    db_path: Optional[Path] = None
    config_path: Optional[Path] = None
    log_level: str = "INFO"
    progress_interval: int = Field(default=10, ge=1)
    default_output: str = "CONTRIBUTIONS.md"


# Module-level singleton
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# ---------------------------------------------------------------------------
# config.toml: organizations and repositories, editable by hand
# ---------------------------------------------------------------------------

class Organization(BaseModel):
    name: str
    description: Optional[str] = None


class RepositoryConfig(BaseModel):
    organization: str
    name: str
    description: Optional[str] = None


class ConfigFile(BaseModel):
    """The registry file: organizations keyed by id, repositories keyed by URL."""

    organizations: dict[str, Organization] = Field(default_factory=dict)
    repositories: dict[str, RepositoryConfig] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ConfigFile":
        if not path.exists():
            raise NotFoundError(f"Config file not found: {path}")
        try:
            data = toml.load(path)
        except (OSError, toml.TomlDecodeError) as e:
            raise StorageError(f"Failed to parse config file {path}: {e}") from e
        return cls(**data)

    @classmethod
    def load_or_new(cls, path: Path) -> "ConfigFile":
        """Load the file if it exists, else start an empty registry."""
        if path.exists():
            return cls.load(path)
        return cls()

    def save(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(toml.dumps(self.model_dump(exclude_none=True)))
        except OSError as e:
            raise StorageError(f"Failed to write config file {path}: {e}") from e
