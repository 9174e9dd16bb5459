"""
Module 08 - CLI Configuration

Locates and loads the configuration file for the CLI, then overlays
MERKLEDROP_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from core.config.runtime import RuntimeConfig


# Searched in order when --config is not given
DEFAULT_CONFIG_NAMES = (
    "merkledrop.yaml",
    "merkledrop.yml",
    "merkledrop.json",
)


def default_config_paths() -> list[Path]:
    paths = [Path.cwd() / name for name in DEFAULT_CONFIG_NAMES]
    paths.append(Path.home() / ".config" / "merkledrop" / "config.yaml")
    return paths


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Raises:
        FileNotFoundError: If an explicit config path does not exist
        ConfigurationException: If any value is invalid
    """
    if config_path is not None:
        return RuntimeConfig.load(config_path).with_env_overrides()

    for default_path in default_config_paths():
        if default_path.exists():
            return RuntimeConfig.load(default_path).with_env_overrides()

    return RuntimeConfig.from_env()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """# merkledrop configuration
# Environment variables (MERKLEDROP_* prefix) override these values.

token:
  symbol: USDC
  decimals: 6
  addresses:
    polygon: "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
    mumbai: "0xA02f6adc7926efeBBd59Fd43A84b4C0B9f2adD45"
    ethereum: "0xA0b86a33E6441c94c5cF8F4D5bF4B3C5E2c3E9e0"

input:
  address_column: address
  amount_column: usdc_reward
  # Reject amounts with more fractional digits than token decimals
  strict_precision: false
  encoding: utf-8-sig

tree:
  # packed: abi.encodePacked(address, uint256); abi: abi.encode(address, uint256)
  leaf_encoding: packed
  # carry: promote the unpaired node; duplicate: pair it with itself
  odd_node_policy: carry

output:
  out_dir: merkle-output

logging:
  level: INFO
  file: null
"""
