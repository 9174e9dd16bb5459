"""
Runtime Configuration

Central configuration for token precision, input parsing, tree shape,
output location and logging.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.claims.amounts import MAX_DECIMALS
from core.claims.sources import DEFAULT_ADDRESS_COLUMN, DEFAULT_AMOUNT_COLUMN
from core.merkle.leaves import LeafEncoding
from core.merkle.merkle_tree import OddNodePolicy
from core.schemas.errors import ConfigurationException

load_dotenv()


# Token contract addresses printed into deployment-info.json
DEFAULT_TOKEN_ADDRESSES: dict[str, str] = {
    "polygon": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
    "mumbai": "0xA02f6adc7926efeBBd59Fd43A84b4C0B9f2adD45",
    "ethereum": "0xA0b86a33E6441c94c5cF8F4D5bF4B3C5E2c3E9e0",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _parse_bool(value: str, field_path: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationException(f"Invalid boolean: {value!r}", field_path=field_path)


@dataclass
class TokenConfig:
    """The token being distributed."""
    symbol: str = "USDC"
    decimals: int = 6
    addresses: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOKEN_ADDRESSES))

    def __post_init__(self):
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ConfigurationException(
                f"decimals must be an integer, got {self.decimals!r}",
                field_path="token.decimals",
            )
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ConfigurationException(
                f"decimals must be between 0 and {MAX_DECIMALS}, got {self.decimals}",
                field_path="token.decimals",
            )
        if not self.symbol:
            raise ConfigurationException("symbol must not be empty", field_path="token.symbol")


@dataclass
class InputConfig:
    """How claim files are read."""
    address_column: str = DEFAULT_ADDRESS_COLUMN
    amount_column: str = DEFAULT_AMOUNT_COLUMN
    strict_precision: bool = False
    encoding: str = "utf-8-sig"


@dataclass
class TreeConfig:
    """Leaf layout and odd-level handling."""
    leaf_encoding: LeafEncoding = LeafEncoding.PACKED
    odd_node_policy: OddNodePolicy = OddNodePolicy.CARRY

    def __post_init__(self):
        try:
            self.leaf_encoding = LeafEncoding(self.leaf_encoding)
        except ValueError:
            raise ConfigurationException(
                f"Unknown leaf encoding: {self.leaf_encoding!r} "
                f"(expected one of {[e.value for e in LeafEncoding]})",
                field_path="tree.leaf_encoding",
            ) from None
        try:
            self.odd_node_policy = OddNodePolicy(self.odd_node_policy)
        except ValueError:
            raise ConfigurationException(
                f"Unknown odd node policy: {self.odd_node_policy!r} "
                f"(expected one of {[p.value for p in OddNodePolicy]})",
                field_path="tree.odd_node_policy",
            ) from None


@dataclass
class OutputConfig:
    """Where artifacts are written."""
    out_dir: str = "merkle-output"


@dataclass
class LoggingConfig:
    """Log level and optional log file."""
    level: str = "INFO"
    file: Optional[str] = None

    def __post_init__(self):
        self.level = str(self.level).upper()
        if self.level not in _LOG_LEVELS:
            raise ConfigurationException(
                f"Unknown log level: {self.level!r}",
                field_path="logging.level",
            )


def _section(cls, data: Any, name: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationException(f"Section '{name}' must be a mapping", field_path=name)
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigurationException(f"Invalid '{name}' section: {e}", field_path=name) from e


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for a distribution build.

    Can be loaded from:
    - Environment variables (and a .env file)
    - YAML or JSON file
    - Programmatic construction
    """
    token: TokenConfig = field(default_factory=TokenConfig)
    input: InputConfig = field(default_factory=InputConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - MERKLEDROP_TOKEN_SYMBOL: Token symbol
        - MERKLEDROP_TOKEN_DECIMALS: Token precision
        - MERKLEDROP_LEAF_ENCODING: packed | abi
        - MERKLEDROP_ODD_NODES: carry | duplicate
        - MERKLEDROP_STRICT_PRECISION: Reject excess fractional digits (true/false)
        - MERKLEDROP_OUT_DIR: Output directory
        - MERKLEDROP_LOG_LEVEL: Log level name
        - MERKLEDROP_LOG_FILE: Log file path
        """
        overrides: dict[str, Any] = {}

        # Token
        if os.getenv("MERKLEDROP_TOKEN_SYMBOL"):
            overrides.setdefault("token", {})["symbol"] = os.getenv("MERKLEDROP_TOKEN_SYMBOL")
        if os.getenv("MERKLEDROP_TOKEN_DECIMALS"):
            raw = os.getenv("MERKLEDROP_TOKEN_DECIMALS", "")
            try:
                overrides.setdefault("token", {})["decimals"] = int(raw)
            except ValueError:
                raise ConfigurationException(
                    f"MERKLEDROP_TOKEN_DECIMALS must be an integer, got {raw!r}",
                    field_path="token.decimals",
                ) from None

        # Tree
        if os.getenv("MERKLEDROP_LEAF_ENCODING"):
            overrides.setdefault("tree", {})["leaf_encoding"] = os.getenv("MERKLEDROP_LEAF_ENCODING")
        if os.getenv("MERKLEDROP_ODD_NODES"):
            overrides.setdefault("tree", {})["odd_node_policy"] = os.getenv("MERKLEDROP_ODD_NODES")

        # Input
        if os.getenv("MERKLEDROP_STRICT_PRECISION"):
            overrides.setdefault("input", {})["strict_precision"] = _parse_bool(
                os.getenv("MERKLEDROP_STRICT_PRECISION", ""), "input.strict_precision"
            )

        # Output
        if os.getenv("MERKLEDROP_OUT_DIR"):
            overrides.setdefault("output", {})["out_dir"] = os.getenv("MERKLEDROP_OUT_DIR")

        # Logging
        if os.getenv("MERKLEDROP_LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.getenv("MERKLEDROP_LOG_LEVEL")
        if os.getenv("MERKLEDROP_LOG_FILE"):
            overrides.setdefault("logging", {})["file"] = os.getenv("MERKLEDROP_LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationException(f"Invalid YAML in {path}: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationException(f"Invalid JSON in {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> "RuntimeConfig":
        """Load a config file, choosing the parser by extension."""
        if Path(path).suffix.lower() == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        if not isinstance(data, dict):
            raise ConfigurationException("Configuration root must be a mapping")

        unknown = set(data) - {"token", "input", "tree", "output", "logging"}
        if unknown:
            raise ConfigurationException(
                f"Unknown configuration sections: {sorted(unknown)}"
            )

        return cls(
            token=_section(TokenConfig, data.get("token"), "token"),
            input=_section(InputConfig, data.get("input"), "input"),
            tree=_section(TreeConfig, data.get("tree"), "tree"),
            output=_section(OutputConfig, data.get("output"), "output"),
            logging=_section(LoggingConfig, data.get("logging"), "logging"),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        merged = self.to_dict()
        for section, values in overrides.items():
            merged[section].update(values)
        return RuntimeConfig.from_dict(copy.deepcopy(merged))

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        data = {
            "token": asdict(self.token),
            "input": asdict(self.input),
            "tree": {
                "leaf_encoding": self.tree.leaf_encoding.value,
                "odd_node_policy": self.tree.odd_node_policy.value,
            },
            "output": asdict(self.output),
            "logging": asdict(self.logging),
        }
        return data

    def to_yaml(self) -> str:
        """Render configuration as YAML."""
        import yaml
        return yaml.safe_dump(self.to_dict(), sort_keys=False)


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set (or with None, reset) the default runtime configuration."""
    global _default_config
    _default_config = config
