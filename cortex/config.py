# Cortex: configuration
# Override defaults via cortex.yaml, environment variables, or CLI args.

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .exceptions import ConfigError

CONFIG_PATH = Path(__file__).parent.parent / "config" / "cortex.yaml"

# env var → config field
ENV_OVERRIDES = {
    "CORTEX_DB": "db_path",
    "CORTEX_API_SECRET": "api_secret",
    "CORTEX_API_URL": "api_base_url",
    "CORTEX_TENANT": "tenant",
    "CORTEX_LOG_LEVEL": "log_level",
}


@dataclass
class CortexConfig:
    """Runtime configuration for the graph server and its clients."""

    # Server
    db_path: str = "~/.local/share/cortex/cortex.db"
    host: str = "127.0.0.1"
    port: int = 8787
    api_secret: str = ""          # empty = write routes are open

    # Client
    api_base_url: str = "http://127.0.0.1:8787"
    tenant: str = "default"
    timeout: float = 5.0

    log_level: str = "INFO"

    def resolve_paths(self):
        """Expand ~ in filesystem paths."""
        self.db_path = str(Path(self.db_path).expanduser())

    def apply_env(self):
        for env_name, attr in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                setattr(self, attr, value)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "CortexConfig":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read config {cfg_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config {cfg_path} must be a mapping")
            known = {f.name for f in fields(cls)}
            cfg = cls(**{k: v for k, v in data.items() if k in known})
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.port = int(cfg.port)
        cfg.timeout = float(cfg.timeout)
        cfg.log_level = str(cfg.log_level).upper()
        cfg.resolve_paths()
        return cfg
