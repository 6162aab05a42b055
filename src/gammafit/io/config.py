"""Configuration file loading and saving."""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import ValidationError

from gammafit.core.domain.config import GammaFitConfig
from gammafit.core.shared.exceptions import ConfigError


def load_config(path: Path) -> GammaFitConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the TOML configuration file.

    Returns:
        GammaFitConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the file is not valid TOML or the configuration is invalid.
    """
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
        return GammaFitConfig.model_validate(data)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except ValidationError as e:
        msg = f"Invalid configuration in {path}:\n{e}"
        raise ConfigError(msg) from e


def save_config(config: GammaFitConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: Configuration object to save.
        path: Path where to save the TOML file.
    """
    data = config.model_dump(mode="json", exclude_none=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(data, f)


def generate_default_config() -> str:
    """Generate a default configuration file as a string.

    Returns:
        str: TOML-formatted default configuration.
    """
    return """# gammafit configuration file
# Generated automatically - edit as needed

[fitting]
max_cycles = 10
max_output_fits = 1
max_peaks = 10
max_residual_threshold = 20.0
peak_width_mode = "varies"          # varies, fixed
convergence_criteria = "larger"     # larger, smaller, larger_inc

[output]
directory = "Fits"
formats = ["json", "txt"]
points_per_channel = 4
log_format = "text"                 # text, json
"""
