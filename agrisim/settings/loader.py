# Settings loader for the agrisim weekly farm simulation
# Layer 1: Bridges YAML configuration to simulation runtime
#
# Loads the settings file and returns structured dataclasses. The scenario
# catalog is part of the settings and is looked up with get_scenario().

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from agrisim.errors import NotFoundError


DEFAULT_SETTINGS_PATH = Path(__file__).with_name("default_settings.yaml")


@dataclass(frozen=True)
class ScenarioDefinition:
    """Named scenario with its length and learning objectives. Never mutated."""
    key: str
    title: str
    description: str
    duration_weeks: int
    objectives: tuple = ()


@dataclass(frozen=True)
class CropProfile:
    """Crop choice offered at setup."""
    name: str
    target_yield_t_ha: float


@dataclass
class InitialStateConfig:
    """Starting values for a new simulation session."""
    budget_usd: float
    soil_moisture_pct: float
    et_gap_pct: float
    nitrogen_leached_pct: float
    total_score: float
    weather_forecast: list = field(default_factory=list)


@dataclass
class StepperConfig:
    """Weekly drift constants."""
    base_weekly_yield_t_ha: float
    weather_noise_t_ha: float
    moisture_decay_pct: float
    moisture_floor_pct: float


@dataclass
class PricingConfig:
    """Decision pricing and impact thresholds."""
    irrigation_usd_per_mm: float
    fertilizer_usd_per_kg: float
    inhibitor_premium: float
    irrigation_high_impact_mm: float
    fertilizer_high_impact_kg_ha: float


@dataclass
class EconomicsConfig:
    """Revenue and scoring parameters.

    Revenue = yield (t/ha) * crop_price_usd_per_ton * area_factor
    """
    crop_price_usd_per_ton: float
    area_factor: float
    moisture_score_threshold_pct: float


@dataclass
class PlaybackConfig:
    """Playback cadence. One week lasts week_duration_s / speed seconds."""
    speeds: tuple
    week_duration_s: float


@dataclass
class DataServiceConfig:
    """Satellite data function endpoint."""
    base_url: str
    api_key: str
    timeout_s: float
    cache_ttl_hours: float


@dataclass
class DecisionEffectsConfig:
    """Optional coupling of scheduled decisions into the weekly arithmetic."""
    enabled: bool = False
    irrigation_moisture_per_mm: float = 0.2
    fertilizer_max_yield_bonus_t_ha: float = 0.15
    fertilizer_half_saturation_kg_ha: float = 60.0
    fertilizer_leaching_per_kg: float = 0.05
    inhibitor_leaching_reduction: float = 0.5
    livestock_et_gap_per_animal: float = 0.5


@dataclass
class SimulationSettings:
    """Complete loaded settings."""
    scenarios: dict  # {key: ScenarioDefinition}
    crops: dict  # {name: CropProfile}
    soil_types: tuple
    initial_state: InitialStateConfig
    stepper: StepperConfig
    pricing: PricingConfig
    economics: EconomicsConfig
    playback: PlaybackConfig
    data_service: DataServiceConfig
    decision_effects: DecisionEffectsConfig = field(default_factory=DecisionEffectsConfig)


def _require(data, key, context=""):
    """Get required key from dict, raise if missing."""
    if key not in data:
        ctx = f" in {context}" if context else ""
        raise KeyError(f"Missing required key '{key}'{ctx}")
    return data[key]


def _load_scenarios(scenarios_data):
    """Parse the scenario catalog."""
    if not scenarios_data:
        raise ValueError("scenarios: at least one scenario must be defined")

    scenarios = {}
    for key, sc in scenarios_data.items():
        context = f"scenarios.{key}"
        duration = int(_require(sc, "duration_weeks", context))
        if duration < 1:
            raise ValueError(f"{context}: duration_weeks must be >= 1, got {duration}")
        scenarios[key] = ScenarioDefinition(
            key=key,
            title=_require(sc, "title", context),
            description=_require(sc, "description", context),
            duration_weeks=duration,
            objectives=tuple(sc.get("objectives", [])),
        )
    return scenarios


def _load_crops(crops_data):
    """Parse crop profiles."""
    crops = {}
    for name, crop in crops_data.items():
        target = float(_require(crop, "target_yield_t_ha", f"crops.{name}"))
        if target <= 0:
            raise ValueError(f"crops.{name}: target_yield_t_ha must be > 0, got {target}")
        crops[name] = CropProfile(name=name, target_yield_t_ha=target)
    return crops


def _load_playback(playback_data):
    """Parse playback section and validate speeds."""
    context = "playback"
    speeds = tuple(float(s) for s in _require(playback_data, "speeds", context))
    if not speeds or any(s <= 0 for s in speeds):
        raise ValueError(f"{context}: speeds must be a non-empty list of positive numbers")
    week_duration_s = float(_require(playback_data, "week_duration_s", context))
    if week_duration_s <= 0:
        raise ValueError(f"{context}: week_duration_s must be > 0, got {week_duration_s}")
    return PlaybackConfig(speeds=speeds, week_duration_s=week_duration_s)


def _load_data_service(ds):
    """Parse data service section, applying environment overrides.

    AGRISIM_DATA_URL / AGRISIM_DATA_KEY take precedence, then the
    SUPABASE_URL / SUPABASE_ANON_KEY variables the hosted functions use.
    """
    context = "data_service"
    base_url = (
        os.environ.get("AGRISIM_DATA_URL")
        or os.environ.get("SUPABASE_URL")
        or _require(ds, "base_url", context)
    )
    api_key = (
        os.environ.get("AGRISIM_DATA_KEY")
        or os.environ.get("SUPABASE_ANON_KEY")
        or ds.get("api_key", "")
    )
    return DataServiceConfig(
        base_url=base_url.rstrip("/"),
        api_key=api_key,
        timeout_s=float(ds.get("timeout_s", 15)),
        cache_ttl_hours=float(ds.get("cache_ttl_hours", 6)),
    )


def _load_decision_effects(effects_data):
    """Parse optional decision effects section."""
    if not effects_data:
        return DecisionEffectsConfig()
    defaults = DecisionEffectsConfig()
    return DecisionEffectsConfig(
        enabled=bool(effects_data.get("enabled", False)),
        irrigation_moisture_per_mm=effects_data.get(
            "irrigation_moisture_per_mm", defaults.irrigation_moisture_per_mm),
        fertilizer_max_yield_bonus_t_ha=effects_data.get(
            "fertilizer_max_yield_bonus_t_ha", defaults.fertilizer_max_yield_bonus_t_ha),
        fertilizer_half_saturation_kg_ha=effects_data.get(
            "fertilizer_half_saturation_kg_ha", defaults.fertilizer_half_saturation_kg_ha),
        fertilizer_leaching_per_kg=effects_data.get(
            "fertilizer_leaching_per_kg", defaults.fertilizer_leaching_per_kg),
        inhibitor_leaching_reduction=effects_data.get(
            "inhibitor_leaching_reduction", defaults.inhibitor_leaching_reduction),
        livestock_et_gap_per_animal=effects_data.get(
            "livestock_et_gap_per_animal", defaults.livestock_et_gap_per_animal),
    )


def load_settings(path=None):
    """Load settings from YAML file and return structured SimulationSettings.

    Args:
        path: Path to settings YAML file (string or Path). Defaults to the
            packaged default_settings.yaml.

    Returns:
        SimulationSettings with all configuration loaded

    Raises:
        FileNotFoundError: If settings file doesn't exist
        KeyError: If required configuration is missing
        ValueError: If configuration values are invalid
    """
    path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    init = _require(data, "initial_state", "root")
    stepper = _require(data, "stepper", "root")
    pricing = _require(data, "pricing", "root")
    econ = _require(data, "economics", "root")

    budget = float(_require(init, "budget_usd", "initial_state"))
    if budget < 0:
        raise ValueError(f"initial_state.budget_usd must be >= 0, got {budget}")

    return SimulationSettings(
        scenarios=_load_scenarios(_require(data, "scenarios", "root")),
        crops=_load_crops(_require(data, "crops", "root")),
        soil_types=tuple(_require(data, "soil_types", "root")),
        initial_state=InitialStateConfig(
            budget_usd=budget,
            soil_moisture_pct=float(_require(init, "soil_moisture_pct", "initial_state")),
            et_gap_pct=float(_require(init, "et_gap_pct", "initial_state")),
            nitrogen_leached_pct=float(_require(init, "nitrogen_leached_pct", "initial_state")),
            total_score=float(_require(init, "total_score", "initial_state")),
            weather_forecast=list(init.get("weather_forecast", [])),
        ),
        stepper=StepperConfig(
            base_weekly_yield_t_ha=float(_require(stepper, "base_weekly_yield_t_ha", "stepper")),
            weather_noise_t_ha=float(_require(stepper, "weather_noise_t_ha", "stepper")),
            moisture_decay_pct=float(_require(stepper, "moisture_decay_pct", "stepper")),
            moisture_floor_pct=float(_require(stepper, "moisture_floor_pct", "stepper")),
        ),
        pricing=PricingConfig(
            irrigation_usd_per_mm=float(_require(pricing, "irrigation_usd_per_mm", "pricing")),
            fertilizer_usd_per_kg=float(_require(pricing, "fertilizer_usd_per_kg", "pricing")),
            inhibitor_premium=float(_require(pricing, "inhibitor_premium", "pricing")),
            irrigation_high_impact_mm=float(_require(pricing, "irrigation_high_impact_mm", "pricing")),
            fertilizer_high_impact_kg_ha=float(_require(pricing, "fertilizer_high_impact_kg_ha", "pricing")),
        ),
        economics=EconomicsConfig(
            crop_price_usd_per_ton=float(_require(econ, "crop_price_usd_per_ton", "economics")),
            area_factor=float(_require(econ, "area_factor", "economics")),
            moisture_score_threshold_pct=float(econ.get("moisture_score_threshold_pct", 20)),
        ),
        playback=_load_playback(_require(data, "playback", "root")),
        data_service=_load_data_service(_require(data, "data_service", "root")),
        decision_effects=_load_decision_effects(data.get("decision_effects")),
    )


_default_settings = None


def get_default_settings():
    """Return the packaged settings, loaded once per process."""
    global _default_settings
    if _default_settings is None:
        _default_settings = load_settings()
    return _default_settings


def get_scenario(key, settings=None):
    """Look up a scenario definition by key.

    Raises:
        NotFoundError: If the scenario key is not in the catalog
    """
    settings = settings or get_default_settings()
    if key not in settings.scenarios:
        valid = ", ".join(settings.scenarios.keys())
        raise NotFoundError(f"Unknown scenario '{key}'. Valid: {valid}")
    return settings.scenarios[key]


def get_crop(name, settings=None):
    """Look up a crop profile by name.

    Raises:
        NotFoundError: If the crop is not configured
    """
    settings = settings or get_default_settings()
    if name not in settings.crops:
        valid = ", ".join(settings.crops.keys())
        raise NotFoundError(f"Unknown crop '{name}'. Valid: {valid}")
    return settings.crops[name]
