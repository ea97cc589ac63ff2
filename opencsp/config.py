"""
Configuration module for OpenCSP.

This module provides configuration management for the OpenCSP library,
including the pricing strategy, the degeneracy workaround, numerical
tolerances and data paths.

Configuration can be set via:
1. Environment variables (OPENCSP_*)
2. Config file (~/.opencsp/config.toml or ./opencsp.toml)
3. Programmatic API

Example:
    >>> from opencsp.config import config
    >>> print(config.pricing_strategy)
    dp
    >>> config.pricing_strategy = "ip"
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

PRICING_STRATEGIES = ("dp", "ip")


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def _get_default_data_path() -> Path:
    """Get the default data path."""
    env_path = os.environ.get('OPENCSP_DATA_PATH')
    if env_path:
        return Path(env_path)

    return _get_project_root() / "data"


def _get_default_strategy() -> str:
    return os.environ.get('OPENCSP_PRICING_STRATEGY', 'dp').lower()


def _get_default_log_level() -> str:
    return os.environ.get('OPENCSP_LOG_LEVEL', 'INFO').upper()


@dataclass
class OpenCSPConfig:
    """
    Configuration for the OpenCSP library.

    Attributes:
        data_path: Root directory for instance files
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        pricing_strategy: Knapsack strategy for pricing ("dp" or "ip")
        workaround: Resolve once with a relaxed capacity when the IP
            strategy returns a duplicate pattern
        dp_max_decimals: Most decimals a width may have for the DP solver;
            the grid is the coarsest 10^-k that holds every width
        dp_max_candidates: Number of ranked patterns the DP solver returns
        tolerances: Numerical tolerances for optimization
    """

    # Paths
    data_path: Path = field(default_factory=_get_default_data_path)

    # Logging
    log_level: str = field(default_factory=_get_default_log_level)

    # Pricing
    pricing_strategy: str = field(default_factory=_get_default_strategy)
    workaround: bool = True
    dp_max_decimals: int = 4
    dp_max_candidates: int = 50

    # Numerical tolerances
    tolerances: dict[str, float] = field(default_factory=lambda: {
        "optimality": 1e-7,
        "integrality": 1e-6,
        "reduced_cost": 1e-6,
        "report_epsilon": 1e-6,
    })

    def __post_init__(self):
        if isinstance(self.data_path, str):
            self.data_path = Path(self.data_path)
        if self.pricing_strategy not in PRICING_STRATEGIES:
            raise ValueError(
                f"Unknown pricing strategy {self.pricing_strategy!r}, "
                f"expected one of {PRICING_STRATEGIES}"
            )
        if self.dp_max_decimals < 0:
            raise ValueError("dp_max_decimals must be non-negative")
        if self.dp_max_candidates < 1:
            raise ValueError("dp_max_candidates must be at least 1")

    # =========================================================================
    # Path helpers
    # =========================================================================

    @property
    def bpplib_path(self) -> Path:
        """Path to BPPLIB benchmark instances."""
        return self.data_path / "bpplib"

    def get_instance_path(self, dataset: str, instance: str) -> Path:
        """
        Get path to a specific instance.

        Args:
            dataset: Dataset name (e.g., "bpplib")
            instance: Instance file name (e.g., "N1C1W1_A.txt")

        Returns:
            Path to the instance file
        """
        return self.data_path / dataset / instance

    # =========================================================================
    # Tolerance helpers
    # =========================================================================

    def get_tolerance(self, name: str) -> float:
        """Get a tolerance value by name."""
        return self.tolerances.get(name, 1e-6)

    def set_tolerance(self, name: str, value: float) -> None:
        """Set a tolerance value."""
        self.tolerances[name] = value

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_path": str(self.data_path),
            "log_level": self.log_level,
            "pricing_strategy": self.pricing_strategy,
            "workaround": self.workaround,
            "dp_max_decimals": self.dp_max_decimals,
            "dp_max_candidates": self.dp_max_candidates,
            "tolerances": self.tolerances.copy(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> 'OpenCSPConfig':
        """Create config from dictionary."""
        defaults = cls()
        tolerances = defaults.tolerances
        tolerances.update(d.get("tolerances", {}))
        return cls(
            data_path=Path(d.get("data_path", _get_default_data_path())),
            log_level=d.get("log_level", defaults.log_level),
            pricing_strategy=d.get("pricing_strategy", defaults.pricing_strategy),
            workaround=d.get("workaround", defaults.workaround),
            dp_max_decimals=d.get("dp_max_decimals", defaults.dp_max_decimals),
            dp_max_candidates=d.get("dp_max_candidates", defaults.dp_max_candidates),
            tolerances=tolerances,
        )

    def save(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to a TOML file.

        Args:
            path: Path to save to (default: ./opencsp.toml)
        """
        if path is None:
            path = Path("opencsp.toml")

        lines = [
            "# OpenCSP Configuration",
            "",
            "[paths]",
            f'data_path = "{self.data_path}"',
            "",
            "[general]",
            f'log_level = "{self.log_level}"',
            "",
            "[pricing]",
            f'pricing_strategy = "{self.pricing_strategy}"',
            f"workaround = {'true' if self.workaround else 'false'}",
            f"dp_max_decimals = {self.dp_max_decimals}",
            f"dp_max_candidates = {self.dp_max_candidates}",
            "",
            "[tolerances]",
        ]
        for name, value in self.tolerances.items():
            lines.append(f"{name} = {value}")

        path.write_text("\n".join(lines))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'OpenCSPConfig':
        """
        Load configuration from a TOML file.

        Args:
            path: Path to load from (default: ./opencsp.toml or ~/.opencsp/config.toml)

        Returns:
            Loaded configuration (or default if file not found)
        """
        if path is None:
            local_config = Path("opencsp.toml")
            user_config = Path.home() / ".opencsp" / "config.toml"

            if local_config.exists():
                path = local_config
            elif user_config.exists():
                path = user_config
            else:
                return cls()

        if not path.exists():
            return cls()

        # Simple TOML-like parsing (no dependency needed)
        config_dict: dict[str, Any] = {"tolerances": {}}
        current_section = None

        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                current_section = line[1:-1]
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"')

                if value in ("true", "false"):
                    value = value == "true"
                elif value.isdigit():
                    value = int(value)
                elif value.replace(".", "").replace("e", "").replace("-", "").isdigit():
                    value = float(value)

                if current_section == "tolerances":
                    config_dict["tolerances"][key] = value
                else:
                    config_dict[key] = value

        return cls.from_dict(config_dict)


# Global configuration instance
config = OpenCSPConfig()


def set_data_path(path: Union[str, Path]) -> None:
    """
    Set the data path globally.

    Args:
        path: New data path
    """
    config.data_path = Path(path)


def get_data_path() -> Path:
    """Get the current data path."""
    return config.data_path
