"""Configuration loading from settings.yaml and .env."""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

import yaml
from dotenv import load_dotenv

from narrative.engine import EVENT_CHAIN_SETTINGS, STORYLINE_SETTINGS, EngineSettings
from world.models import WorldSnapshot

VARIANT_DEFAULTS: dict[str, EngineSettings] = {
    "storyline": STORYLINE_SETTINGS,
    "event_chain": EVENT_CHAIN_SETTINGS,
}

CHOICE_POLICIES = ("first", "random", "none")


class ConfigError(ValueError):
    """A settings section is present but unusable."""


def default_config_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "config"


def load_config(
    config_dir: str | Path | None = None,
) -> dict:
    """Load settings.yaml and .env, return merged config dict."""
    if config_dir is None:
        config_dir = default_config_dir()
    config_dir = Path(config_dir)

    # Load .env (silently skip if missing)
    env_path = config_dir / ".env"
    load_dotenv(env_path)

    settings_path = config_dir / "settings.yaml"
    if not settings_path.exists():
        raise FileNotFoundError(f"Config not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"{settings_path} must contain a mapping, got {type(cfg).__name__}")

    cfg["_config_dir"] = str(config_dir)
    cfg["_env"] = {
        "seed": os.getenv("CAREER_SEED", ""),
        "data_dir": os.getenv("CAREER_DATA_DIR", ""),
    }

    policy = simulation_settings(cfg)["choice_policy"]
    if policy not in CHOICE_POLICIES:
        raise ConfigError(f"simulation.choice_policy must be one of {CHOICE_POLICIES}, got {policy!r}")

    return cfg


def simulation_settings(cfg: dict) -> dict:
    """The ``simulation`` section with defaults and the env seed applied."""
    sim = dict(cfg.get("simulation") or {})
    env_seed = cfg.get("_env", {}).get("seed")
    if env_seed:
        sim["seed"] = env_seed
    sim.setdefault("seed", "scout")
    sim["seed"] = str(sim["seed"])
    sim.setdefault("choice_policy", "first")
    return sim


def engine_settings(cfg: dict, variant: str) -> EngineSettings:
    """Merge ``engines.<variant>`` over the variant's built-in defaults."""
    base = VARIANT_DEFAULTS.get(variant)
    if base is None:
        raise ConfigError(f"Unknown engine variant {variant!r}")

    section = (cfg.get("engines") or {}).get(variant) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"engines.{variant} must be a mapping")

    changes = {}
    try:
        if "weeks_per_season" in section:
            changes["weeks_per_season"] = int(section["weeks_per_season"])
        if "trigger_chance" in section:
            changes["trigger_chance"] = float(section["trigger_chance"])
        if "max_concurrent" in section:
            changes["max_concurrent"] = int(section["max_concurrent"])
        return replace(base, **changes)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"engines.{variant}: {e}") from e


def storage_path(cfg: dict, key: str, default: str) -> Path:
    """Resolve a ``storage`` entry; relative paths land under the data root."""
    path = Path(cfg.get("storage", {}).get(key) or default)
    if path.is_absolute():
        return path
    data_dir = cfg.get("_env", {}).get("data_dir")
    if data_dir:
        return Path(data_dir) / path.name
    return Path(__file__).resolve().parent.parent / path


def load_world(cfg: dict) -> WorldSnapshot:
    """Read the world file named by ``storage.world_file`` (relative to the config dir)."""
    name = cfg.get("storage", {}).get("world_file") or "world.yaml"
    path = Path(name)
    if not path.is_absolute():
        path = Path(cfg.get("_config_dir") or default_config_dir()) / path
    if not path.exists():
        raise FileNotFoundError(f"World file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(raw).__name__}")
    return WorldSnapshot.from_dict(raw)
