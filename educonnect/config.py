"""
Client Configuration Management
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

from dotenv import load_dotenv


DEFAULT_API_URL = "https://studiesmasters-backend-2.onrender.com"

# Mobile money account that receives registration payments
DEFAULT_MOMO_NUMBER = "0591586781"
DEFAULT_MOMO_NAME = "DANIEL MENSAH WILLIAMS"


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    """Configuration for the EduConnect client"""

    # API settings
    api_base_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    # Workflow settings
    redirect_delay: float = 1.5  # seconds before leaving the payment page

    # Payment settings
    momo_number: str = DEFAULT_MOMO_NUMBER
    momo_name: str = DEFAULT_MOMO_NAME

    # Output settings
    verbose: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logs: bool = False

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".educonnect"))
    storage_file: str = "storage.json"

    def __post_init__(self):
        """Resolve relative paths against the config directory"""
        if not os.path.isabs(self.storage_file):
            self.storage_file = str(Path(self.config_dir) / self.storage_file)
        if self.log_file and not os.path.isabs(self.log_file):
            self.log_file = str(Path(self.config_dir) / self.log_file)
        self.api_base_url = self.api_base_url.rstrip('/')

    def load_from_file(self, config_path: str) -> None:
        """Load configuration from JSON file"""
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                for key, value in data.items():
                    if hasattr(self, key):
                        setattr(self, key, value)
            self.api_base_url = self.api_base_url.rstrip('/')

    def save_to_file(self, config_path: Optional[str] = None) -> None:
        """Save configuration to JSON file"""
        path = Path(config_path or (Path(self.config_dir) / "config.json"))
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load_default(cls, config_dir: Optional[str] = None) -> "ClientConfig":
        """Load defaults, then config.json, then .env, then the environment"""
        load_dotenv()

        config_dir = config_dir or os.environ.get("EDUCONNECT_CONFIG_DIR")
        config = cls(config_dir=config_dir) if config_dir else cls()
        default_config_path = Path(config.config_dir) / "config.json"
        if default_config_path.exists():
            config.load_from_file(str(default_config_path))

        config._load_from_env()

        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "EDUCONNECT_API_URL": ("api_base_url", lambda x: x.rstrip('/')),
            "EDUCONNECT_TIMEOUT": ("timeout", float),
            "EDUCONNECT_REDIRECT_DELAY": ("redirect_delay", float),
            "EDUCONNECT_MOMO_NUMBER": "momo_number",
            "EDUCONNECT_MOMO_NAME": "momo_name",
            "EDUCONNECT_LOG_LEVEL": "log_level",
            "EDUCONNECT_LOG_FILE": "log_file",
            "EDUCONNECT_JSON_LOGS": ("json_logs", _as_bool),
            "EDUCONNECT_VERBOSE": ("verbose", _as_bool),
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)
