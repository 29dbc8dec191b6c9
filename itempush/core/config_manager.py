"""
Configuration management for itempush.

Handles loading, merging and discovery of YAML configuration and turns the
merged dictionary into the typed settings the upload components take.
"""
import os
from importlib import resources
from typing import List, Optional

import yaml

from itempush.upload.category_map import CategoryMap
from itempush.upload.exceptions import ConfigurationError
from itempush.upload.models import EndpointCandidate, FinalizeSettings, StudioConfig


USER_CONFIG_FILE = "itempush.config.yaml"


class ConfigManager:
    """Manages itempush configuration loading and merging operations."""

    def load_config(self, path: str) -> dict:
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    def deep_merge(self, default: dict, user: dict) -> dict:
        """Deep merge user config into default config."""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def load_package_default_config(self) -> dict:
        """Load default config shipped with the package."""
        default_config = resources.files("itempush.config") / "default.yaml"
        with default_config.open("r") as f:
            return yaml.safe_load(f)

    def load_and_merge_config(self, user_config_path: str) -> dict:
        """Load user config and merge with package default."""
        return self.deep_merge(self.load_package_default_config(), self.load_config(user_config_path))

    def discover_and_load_config(self, config_arg: Optional[str]) -> dict:
        """Discover config file with priority order."""

        # Priority 1: --config argument
        if config_arg:
            if os.path.exists(config_arg):
                return self.load_and_merge_config(config_arg)
            raise FileNotFoundError(f"Config file not found: {config_arg}")

        # Priority 2: itempush.config.yaml in current directory
        if os.path.exists(USER_CONFIG_FILE):
            return self.load_and_merge_config(USER_CONFIG_FILE)

        # Priority 3: Package default config
        return self.load_package_default_config()

    def load_candidates_file(self, path: str) -> List[dict]:
        """Load a standalone candidate list (a list, or a mapping with ``candidates``)."""
        if not os.path.exists(path):
            raise FileNotFoundError(f"Candidates file not found: {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")
        if isinstance(data, dict):
            data = data.get("candidates", (data.get("discovery") or {}).get("candidates"))
        if not isinstance(data, list):
            raise ConfigurationError(f"Candidates file {path} must contain a list of endpoints")
        return data

    def apply_candidates_file(self, config: dict, path: Optional[str]) -> dict:
        """Replace the configured candidate list with the one from ``path``."""
        if not path:
            return config
        candidates = self.load_candidates_file(path)
        config = dict(config)
        config["discovery"] = dict(config.get("discovery") or {}, candidates=candidates)
        return config

    def build_studio_config(self, config: dict) -> StudioConfig:
        studio = dict(config.get("studio") or {})
        transfer = config.get("transfer") or {}
        if not studio.get("api_url"):
            raise ConfigurationError("studio.api_url is not configured")

        return StudioConfig(
            api_url=studio["api_url"],
            login_path=studio.get("login_path", "/api/authenticate"),
            login_id_field=studio.get("login_id_field", "loginId"),
            secret_field=studio.get("secret_field", "password"),
            token_field=studio.get("token_field", "authToken"),
            request_timeout=int(studio.get("request_timeout", 30)),
            transfer_timeout=int(transfer.get("timeout", 3600)),
            chunk_size=int(transfer.get("chunk_size", 1024 * 1024)),
            user_agent=studio.get("user_agent"),
            extra_headers={str(k): str(v) for k, v in (studio.get("extra_headers") or {}).items()},
        )

    def build_finalize_settings(self, config: dict) -> FinalizeSettings:
        values = {k: v for k, v in (config.get("finalize") or {}).items() if v is not None}
        known = FinalizeSettings.__dataclass_fields__
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ConfigurationError(f"Unknown finalize settings: {', '.join(unknown)}")
        return FinalizeSettings(**values)

    def build_candidates(self, config: dict) -> List[EndpointCandidate]:
        entries = (config.get("discovery") or {}).get("candidates") or []
        candidates = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("url"):
                raise ConfigurationError(f"Endpoint candidate #{index + 1} has no url")
            candidates.append(EndpointCandidate.from_dict(entry))
        return candidates

    def build_category_map(self, config: dict) -> CategoryMap:
        return CategoryMap(config.get("categories") or None)

    def allowed_extensions(self, config: dict) -> Optional[List[str]]:
        return (config.get("files") or {}).get("allowed_extensions")
