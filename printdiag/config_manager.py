"""
Configuration management for PrintDiag.
"""
import importlib.resources as importlib_resources
import logging
import math
import os
from typing import List, Optional
from urllib.parse import urlparse

import yaml

from printdiag.submission.exceptions import ConfigurationError
from printdiag.submission.models import SubmissionConfig

logger = logging.getLogger(__name__)

LOCAL_CONFIG_FILE = "printdiag.config.yaml"


class ConfigManager:
    """Loads, merges and validates configuration."""

    ENV_OVERRIDES = {
        "PRINTDIAG_API_URL": ("api", "url", str),
        "PRINTDIAG_TIMEOUT": ("api", "timeout", float),
        "PRINTDIAG_MAX_RETRIES": ("api", "max_retries", int),
    }

    SECTIONS = ("api", "artifact", "description")

    def load_config(self, path: str) -> dict:
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file cannot be read or parsed, or is not
                a mapping of mappings.
        """
        try:
            with open(path, "r") as f:
                config = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping, got {type(config).__name__}")
        for section in self.SECTIONS:
            if section in config and not isinstance(config[section], dict):
                raise ConfigurationError(f"'{section}' in config file {path} must be a mapping")
        return config

    def load_package_default_config(self) -> dict:
        """Load default config from package."""
        import printdiag.config
        default_config_path = importlib_resources.files(printdiag.config) / "default.yaml"
        with default_config_path.open("r") as f:
            return yaml.safe_load(f)

    def discover_and_load_config(self, config_arg: Optional[str]) -> dict:
        """Discover config file with simple priority order."""

        # Priority 1: --config argument
        if config_arg:
            if not os.path.exists(config_arg):
                raise ConfigurationError(f"Config file not found: {config_arg}")
            user_config = self.load_config(config_arg)
            default_config = self.load_package_default_config()
            return self._merge_configs(default_config, user_config)

        # Priority 2: printdiag.config.yaml in current directory
        if os.path.exists(LOCAL_CONFIG_FILE):
            user_config = self.load_config(LOCAL_CONFIG_FILE)
            default_config = self.load_package_default_config()
            return self._merge_configs(default_config, user_config)

        # Priority 3: Package default config
        return self.load_package_default_config()

    def apply_environment_overrides(self, config: dict) -> dict:
        """Override config values from PRINTDIAG_* environment variables."""
        for var_name, (section, key, var_type) in self.ENV_OVERRIDES.items():
            env_value = os.getenv(var_name)
            if not env_value:
                continue
            try:
                config.setdefault(section, {})[key] = var_type(env_value)
            except ValueError:
                # Keep the file value if conversion fails
                logger.warning(f"Ignoring {var_name}={env_value!r}: expected {var_type.__name__}")
        return config

    def merge_config_and_args(self, config: dict, api_url: Optional[str] = None, timeout: Optional[float] = None) -> dict:
        """Merge configuration with CLI arguments."""
        if api_url is not None:
            config.setdefault("api", {})["url"] = api_url
        if timeout is not None:
            config.setdefault("api", {})["timeout"] = timeout
        return config

    def validate_config(self, config: dict) -> List[str]:
        """Validate configuration.

        Args:
            config: Configuration dictionary

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []
        api = config.get("api") or {}
        artifact = config.get("artifact") or {}
        description = config.get("description") or {}

        url = api.get("url")
        parsed = urlparse(url) if isinstance(url, str) else None
        if not parsed or parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"'api.url' must be an http(s) URL, got {url!r}")

        timeout = api.get("timeout")
        if not self._is_positive_number(timeout):
            errors.append("'api.timeout' must be a positive number of seconds")

        retries = api.get("max_retries")
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 1:
            errors.append("'api.max_retries' must be an integer >= 1")

        extension = artifact.get("required_extension")
        if not isinstance(extension, str) or not extension.startswith("."):
            errors.append("'artifact.required_extension' must start with '.'")

        size = artifact.get("max_file_size_mb")
        if not self._is_positive_number(size):
            errors.append("'artifact.max_file_size_mb' must be positive")

        level = artifact.get("compression_level")
        if not isinstance(level, int) or isinstance(level, bool) or not 0 <= level <= 9:
            errors.append("'artifact.compression_level' must be an integer between 0 and 9")

        min_words = description.get("min_words")
        if not isinstance(min_words, int) or isinstance(min_words, bool) or min_words < 1:
            errors.append("'description.min_words' must be a positive integer")

        return errors

    def build_submission_config(self, config: dict) -> SubmissionConfig:
        """Validate the merged config and turn it into a SubmissionConfig."""
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                errors=errors,
            )

        api = config["api"]
        artifact = config["artifact"]
        return SubmissionConfig(
            api_url=api["url"],
            endpoint=api.get("endpoint", "/api/troubleshooting"),
            max_file_size_mb=artifact["max_file_size_mb"],
            required_extension=artifact["required_extension"],
            min_description_words=config["description"]["min_words"],
            request_timeout=float(api["timeout"]),
            max_retries=api["max_retries"],
            compression_level=artifact["compression_level"],
        )

    def load_submission_config(
        self,
        config_arg: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> SubmissionConfig:
        """Files, then environment, then CLI arguments."""
        config = self.discover_and_load_config(config_arg)
        config = self.apply_environment_overrides(config)
        config = self.merge_config_and_args(config, api_url=api_url, timeout=timeout)
        return self.build_submission_config(config)

    @staticmethod
    def _is_positive_number(value) -> bool:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return False
        return math.isfinite(value) and value > 0

    def _merge_configs(self, default: dict, user: dict) -> dict:
        """Simple config merge."""
        result = default.copy()
        if user is None:
            return result
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result
