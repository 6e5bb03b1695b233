"""
ProdPlan Core - Planner Settings
================================

Defaults for the planning engines, overridable through environment variables.

Uso:
    from prodplan.settings import Settings

    rule = Settings.get_config().default_dispatch_rule
    population = Settings.get_config().ga_population_size

Configuração via variáveis de ambiente (ou ficheiro .env):
    PRODPLAN_DISPATCH_RULE=spt
    PRODPLAN_GA_GENERATIONS=200
    PRODPLAN_GA_SEED=42
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class PlannerSettings:
    """
    Planner configuration.

    Defaults reproduce the reference behaviour: EDD dispatching, 90-day MRP
    horizon, GA with 50 individuals over 100 generations and 10% mutation.
    """
    default_dispatch_rule: str = "edd"

    # MRP
    mrp_horizon_days: int = 90

    # Genetic optimizer
    ga_population_size: int = 50
    ga_generations: int = 100
    ga_mutation_rate: float = 0.1
    ga_seed: Optional[int] = None
    ga_time_limit_sec: Optional[float] = None

    # Capacity planner thresholds (percent)
    underutilized_below_pct: float = 60.0
    near_capacity_from_pct: float = 85.0
    high_utilization_pct: float = 90.0
    bottleneck_limit: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed <= 0:
        raise ValueError(f"expected a positive integer, got {value}")
    return parsed


def _positive_float(value: str) -> float:
    parsed = float(value)
    if parsed <= 0:
        raise ValueError(f"expected a positive number, got {value}")
    return parsed


def _rate(value: str) -> float:
    parsed = float(value)
    if not 0.0 <= parsed <= 1.0:
        raise ValueError(f"expected a rate in [0, 1], got {value}")
    return parsed


def _dispatch_rule(value: str) -> str:
    from prodplan.scheduling.types import DispatchRule

    return DispatchRule(value.lower()).value


ENV_MAPPING: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "PRODPLAN_DISPATCH_RULE": ("default_dispatch_rule", _dispatch_rule),
    "PRODPLAN_MRP_HORIZON_DAYS": ("mrp_horizon_days", _positive_int),
    "PRODPLAN_GA_POPULATION": ("ga_population_size", _positive_int),
    "PRODPLAN_GA_GENERATIONS": ("ga_generations", _positive_int),
    "PRODPLAN_GA_MUTATION_RATE": ("ga_mutation_rate", _rate),
    "PRODPLAN_GA_SEED": ("ga_seed", int),
    "PRODPLAN_GA_TIME_LIMIT_SEC": ("ga_time_limit_sec", _positive_float),
    "PRODPLAN_HIGH_UTILIZATION_PCT": ("high_utilization_pct", _positive_float),
    "PRODPLAN_BOTTLENECK_LIMIT": ("bottleneck_limit", _positive_int),
}


class Settings:
    """
    Singleton para as definições do planner.

    Carrega configuração de variáveis de ambiente na primeira chamada;
    `reset()` força nova leitura (útil em testes).
    """

    _instance: Optional[PlannerSettings] = None

    @classmethod
    def _load_from_env(cls) -> PlannerSettings:
        """Carrega configuração de variáveis de ambiente."""
        load_dotenv()
        config = PlannerSettings()

        for env_var, (attr_name, parser) in ENV_MAPPING.items():
            value = os.environ.get(env_var)
            if not value:
                continue
            try:
                setattr(config, attr_name, parser(value))
                logger.info(f"Setting {attr_name} = {value}")
            except ValueError:
                logger.warning(f"Invalid value for {env_var}: {value}")

        return config

    @classmethod
    def get_config(cls) -> PlannerSettings:
        """Obtém configuração atual."""
        if cls._instance is None:
            cls._instance = cls._load_from_env()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset para recarregar config."""
        cls._instance = None

    @classmethod
    def override(cls, **values: Any) -> PlannerSettings:
        """
        Altera definições em runtime (para testes).

        Raises:
            AttributeError: if a name is not a known setting
        """
        config = cls.get_config()
        known = {f.name for f in fields(config)}
        for name, value in values.items():
            if name not in known:
                raise AttributeError(f"Unknown setting: {name}")
            setattr(config, name, value)
        return config
