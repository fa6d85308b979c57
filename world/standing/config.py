"""
Configuration for the standing system.

All tunable parameters live here, not in code.
Defaults are mirrored in config/standing_defaults.yaml.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Union

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "standing_defaults.yaml"


@dataclass
class InvolvementWeights:
    """Weights for the five involvement components."""
    role_activity: float
    event_participation: float
    network_centrality: float
    initiative: float
    reliability: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class LoyaltyWeights:
    """Weights for the five loyalty components."""
    identity_fit: float
    benefit_flow: float
    shared_history: float
    pressure_cost: float
    satisfaction: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class ScoringWeights:
    """Weight tables for both formulas."""
    involvement: InvolvementWeights
    loyalty: LoyaltyWeights


@dataclass
class ScoringWindow:
    """Lookback windows in days, and weekly decay factor."""
    involvement_days: int
    loyalty_days: int
    decay_factor: float  # e.g. 0.90 = 10% decay per week


@dataclass
class RelationScale:
    """Scale used by seeded relation scores and effective scores."""
    min_score: float
    max_score: float


@dataclass
class StandingConfig:
    """Complete standing system configuration."""
    weights: ScoringWeights
    window: ScoringWindow
    enable_decay: bool
    min_score: float
    max_score: float
    relation_scale: RelationScale
    network_degree_cap: int
    loyalty_person_sample: int
    default_world_seed: str


_DEFAULT_CONFIG = StandingConfig(
    weights=ScoringWeights(
        involvement=InvolvementWeights(
            role_activity=0.35,
            event_participation=0.25,
            network_centrality=0.20,
            initiative=0.10,
            reliability=0.10,
        ),
        loyalty=LoyaltyWeights(
            identity_fit=0.25,
            benefit_flow=0.25,
            shared_history=0.20,
            pressure_cost=0.15,
            satisfaction=0.15,
        ),
    ),
    window=ScoringWindow(
        involvement_days=90,
        loyalty_days=180,
        decay_factor=0.90,
    ),
    enable_decay=True,
    min_score=0.0,
    max_score=1.0,
    relation_scale=RelationScale(min_score=1.0, max_score=100.0),
    network_degree_cap=100,
    loyalty_person_sample=10,
    default_world_seed="default-world",
)

# Active configuration (can be replaced at runtime)
_active_config: StandingConfig = _DEFAULT_CONFIG


def get_config() -> StandingConfig:
    """Get the active standing configuration."""
    return _active_config


def set_config(config: StandingConfig) -> None:
    """Set the active standing configuration."""
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Reset to default configuration."""
    global _active_config
    _active_config = _DEFAULT_CONFIG


def get_default_config() -> StandingConfig:
    """Return the built-in defaults, ignoring any active override."""
    return _DEFAULT_CONFIG


# =============================================================================
# YAML LOADING
# =============================================================================

def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    """Fetch a required key, naming the dotted path on failure."""
    if not isinstance(data, dict) or key not in data:
        raise ValueError(f"Missing required field: {path}{key}")
    return data[key]


def _load_weights(data: Dict[str, Any]) -> ScoringWeights:
    inv = _require(data, "involvement", "weights.")
    loy = _require(data, "loyalty", "weights.")
    return ScoringWeights(
        involvement=InvolvementWeights(
            role_activity=float(_require(inv, "role_activity", "weights.involvement.")),
            event_participation=float(_require(inv, "event_participation", "weights.involvement.")),
            network_centrality=float(_require(inv, "network_centrality", "weights.involvement.")),
            initiative=float(_require(inv, "initiative", "weights.involvement.")),
            reliability=float(_require(inv, "reliability", "weights.involvement.")),
        ),
        loyalty=LoyaltyWeights(
            identity_fit=float(_require(loy, "identity_fit", "weights.loyalty.")),
            benefit_flow=float(_require(loy, "benefit_flow", "weights.loyalty.")),
            shared_history=float(_require(loy, "shared_history", "weights.loyalty.")),
            pressure_cost=float(_require(loy, "pressure_cost", "weights.loyalty.")),
            satisfaction=float(_require(loy, "satisfaction", "weights.loyalty.")),
        ),
    )


def load_config_from_yaml(path: Union[str, Path]) -> StandingConfig:
    """
    Load a StandingConfig from a YAML file.

    Every field is required; there is no silent merge with defaults.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed or a field is missing
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("YAML root must be a dictionary")

    weights = _load_weights(_require(data, "weights", ""))

    window_data = _require(data, "window", "")
    window = ScoringWindow(
        involvement_days=int(_require(window_data, "involvement_days", "window.")),
        loyalty_days=int(_require(window_data, "loyalty_days", "window.")),
        decay_factor=float(_require(window_data, "decay_factor", "window.")),
    )

    scale_data = _require(data, "relation_scale", "")
    relation_scale = RelationScale(
        min_score=float(_require(scale_data, "min_score", "relation_scale.")),
        max_score=float(_require(scale_data, "max_score", "relation_scale.")),
    )

    return StandingConfig(
        weights=weights,
        window=window,
        enable_decay=bool(_require(data, "enable_decay", "")),
        min_score=float(_require(data, "min_score", "")),
        max_score=float(_require(data, "max_score", "")),
        relation_scale=relation_scale,
        network_degree_cap=int(_require(data, "network_degree_cap", "")),
        loyalty_person_sample=int(_require(data, "loyalty_person_sample", "")),
        default_world_seed=str(_require(data, "default_world_seed", "")),
    )
