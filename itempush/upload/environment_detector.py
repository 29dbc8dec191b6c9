"""
Environment Detector

Reads itempush settings from environment variables and layers them over
the YAML configuration.
"""

import os
from typing import List, Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError
from .models import ValidationResult


class StudioEnvironmentDetector:
    """Detects and validates upload settings from the environment"""

    API_URL_VAR = "ITEMPUSH_API_URL"
    ACCOUNTS_FILE_VAR = "ITEMPUSH_ACCOUNTS_FILE"
    CANDIDATES_FILE_VAR = "ITEMPUSH_CANDIDATES_FILE"
    LOG_LEVEL_VAR = "ITEMPUSH_LOG_LEVEL"

    # env var -> (config section, key, type)
    OPTIONAL_VARS = {
        "ITEMPUSH_REQUEST_TIMEOUT": ("studio", "request_timeout", int),
        "ITEMPUSH_TRANSFER_TIMEOUT": ("transfer", "timeout", int),
        "ITEMPUSH_CHUNK_SIZE": ("transfer", "chunk_size", int),
    }

    def get_accounts_file(self) -> Optional[str]:
        return os.getenv(self.ACCOUNTS_FILE_VAR) or None

    def get_candidates_file(self) -> Optional[str]:
        return os.getenv(self.CANDIDATES_FILE_VAR) or None

    def get_missing_variables(self) -> List[str]:
        """Variables the upload command cannot run without"""
        return [var for var in [self.ACCOUNTS_FILE_VAR] if not os.getenv(var)]

    def validate_environment(self) -> ValidationResult:
        api_url = os.getenv(self.API_URL_VAR)
        if api_url and not self._validate_api_url(api_url):
            return ValidationResult(
                is_valid=False,
                error_message=f"Invalid API URL format: {api_url}",
                validation_type="environment"
            )
        return ValidationResult(is_valid=True)

    def apply_overrides(self, config: dict) -> dict:
        """Return a copy of ``config`` with environment overrides applied"""
        validation = self.validate_environment()
        if not validation.is_valid:
            raise ConfigurationError(validation.error_message)

        result = {key: dict(value) if isinstance(value, dict) else value for key, value in config.items()}

        api_url = os.getenv(self.API_URL_VAR)
        if api_url:
            result.setdefault("studio", {})["api_url"] = api_url

        for var_name, (section, key, var_type) in self.OPTIONAL_VARS.items():
            env_value = os.getenv(var_name)
            if not env_value:
                continue
            try:
                result.setdefault(section, {})[key] = var_type(env_value)
            except ValueError:
                # Keep the configured value if conversion fails
                pass

        return result

    def _validate_api_url(self, url: str) -> bool:
        parsed = urlparse(url)
        return parsed.scheme in ['http', 'https'] and bool(parsed.netloc)

    def get_environment_summary(self) -> dict:
        """Get summary of environment configuration for debugging"""
        summary = {
            "missing_variables": self.get_missing_variables(),
            "detected_variables": {},
        }
        for var in [self.API_URL_VAR, self.ACCOUNTS_FILE_VAR, self.CANDIDATES_FILE_VAR, self.LOG_LEVEL_VAR, *self.OPTIONAL_VARS]:
            summary["detected_variables"][var] = os.getenv(var)
        return summary
