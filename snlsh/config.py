"""
Configuration for the signature index.

Holds the band count, the self-exclusion policy, the tokenizer and the
defaults used by the command line front-end. Stored as YAML; looked up in the
current directory, then the home directory, unless ``SNLSH_CONFIG`` points
elsewhere.
"""

import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core.errors import InvalidConfigurationError
from .core.tokenize import TOKENIZERS, Tokenizer, get_tokenizer
from .semantic.lsh_index import MAX_BANDS, MIN_BANDS
from .semantic.simhash import BITS

DEFAULT_CONFIG_NAME = ".snlsh.yml"
CONFIG_ENV_VAR = "SNLSH_CONFIG"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class LSHConfig:
    """
    Parameters for building and querying a ``SignatureLSH``.

    ``bands`` trades recall for speed: with more bands each window is
    narrower and more items collide into the candidate set.
    """

    bands: int = 4

    # Skip stored items whose text equals the query text
    identical_excluded: bool = True

    # CLI query defaults
    default_k: int = 10
    default_radius: float = 10

    # Tokenization: "word", "whitespace" or "shingles"
    tokenizer: str = "word"
    shingle_size: int = 2
    lowercase: bool = True

    def __post_init__(self):
        """Validate configuration parameters."""
        if not _is_int(self.bands):
            raise InvalidConfigurationError(
                f"bands must be an integer, got {self.bands!r}",
                parameter="bands", value=self.bands,
            )
        if not (MIN_BANDS <= self.bands <= MAX_BANDS) or BITS % self.bands:
            raise InvalidConfigurationError(
                f"bands must be between {MIN_BANDS} and {MAX_BANDS} and divide {BITS}, "
                f"got {self.bands}",
                parameter="bands", value=self.bands,
            )

        for name in ("identical_excluded", "lowercase"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise InvalidConfigurationError(
                    f"{name} must be true or false, got {value!r}",
                    parameter=name, value=value,
                )

        if not _is_int(self.default_k) or self.default_k < 1:
            raise InvalidConfigurationError(
                f"default_k must be an integer >= 1, got {self.default_k!r}",
                parameter="default_k", value=self.default_k,
            )

        radius = self.default_radius
        if (
            isinstance(radius, bool)
            or not isinstance(radius, (int, float))
            or math.isnan(radius)
            or radius <= 0
        ):
            raise InvalidConfigurationError(
                f"default_radius must be a positive number, got {radius!r}",
                parameter="default_radius", value=radius,
            )

        if self.tokenizer not in TOKENIZERS:
            raise InvalidConfigurationError(
                f"tokenizer must be one of {', '.join(TOKENIZERS)}, got {self.tokenizer!r}",
                parameter="tokenizer", value=self.tokenizer,
            )

        if not _is_int(self.shingle_size) or self.shingle_size < 1:
            raise InvalidConfigurationError(
                f"shingle_size must be an integer >= 1, got {self.shingle_size!r}",
                parameter="shingle_size", value=self.shingle_size,
            )

    def make_tokenizer(self) -> Tokenizer:
        """The tokenizer these settings describe."""
        return get_tokenizer(
            self.tokenizer, lowercase=self.lowercase, shingle_size=self.shingle_size
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "bands": self.bands,
            "identical_excluded": self.identical_excluded,
            "default_k": self.default_k,
            "default_radius": self.default_radius,
            "tokenizer": self.tokenizer,
            "shingle_size": self.shingle_size,
            "lowercase": self.lowercase,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LSHConfig":
        """Create from dictionary representation; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                parameter=unknown[0], value=data[unknown[0]],
            )
        return cls(
            bands=data.get("bands", 4),
            identical_excluded=data.get("identical_excluded", True),
            default_k=data.get("default_k", 10),
            default_radius=data.get("default_radius", 10),
            tokenizer=data.get("tokenizer", "word"),
            shingle_size=data.get("shingle_size", 2),
            lowercase=data.get("lowercase", True),
        )

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "LSHConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise InvalidConfigurationError(
                f"Configuration file must contain a mapping: {file_path}"
            )
        return cls.from_dict(data or {})

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        current_dir_config = Path(DEFAULT_CONFIG_NAME)
        if current_dir_config.exists():
            return current_dir_config

        return Path.home() / DEFAULT_CONFIG_NAME

    @classmethod
    def load_or_default(
        cls, config_path: Optional[Union[str, Path]] = None
    ) -> "LSHConfig":
        """
        Load configuration from file or return default if not found.

        Args:
            config_path: Optional path to configuration file

        Returns:
            LSHConfig instance
        """
        if config_path:
            config_path = Path(config_path)
            if config_path.exists():
                return cls.load_from_file(config_path)
        else:
            default_path = cls.get_default_config_path()
            if default_path.exists():
                return cls.load_from_file(default_path)

        return cls()


class ConfigManager:
    """
    Loads and saves ``LSHConfig`` with environment variable support.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[LSHConfig] = None

    @property
    def config(self) -> LSHConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> LSHConfig:
        """Load configuration from file or environment."""
        env_config_path = os.getenv(CONFIG_ENV_VAR)
        if env_config_path:
            config_path = Path(env_config_path)
            if config_path.exists():
                return LSHConfig.load_from_file(config_path)

        if self.config_path and self.config_path.exists():
            return LSHConfig.load_from_file(self.config_path)

        return LSHConfig.load_or_default()

    def save_config(
        self, config: LSHConfig, path: Optional[Union[str, Path]] = None
    ) -> Path:
        """Save configuration to file and return where it went."""
        save_path = (
            Path(path)
            if path
            else (self.config_path or LSHConfig.get_default_config_path())
        )
        config.save_to_file(save_path)
        self._config = config
        return save_path
