"""
Políticas de distancia de frenado.

La distancia "suficiente" de un vehículo es min_following_gap más la
distancia de frenado. Cómo se estima esa distancia es una política
ajustable: lo único que se exige es que sea monótona (no decreciente)
en la velocidad actual.
"""

from typing import Callable, Dict

from src.utils.config import VehicleConfig

# (velocidad actual, configuración del vehículo) -> metros
BrakingDistancePolicy = Callable[[float, VehicleConfig], float]


def proportional_braking_distance(speed: float, config: VehicleConfig) -> float:
    """
    Distancia proporcional a la velocidad: S = V0 * t / 2.

    Es la distancia recorrida al frenar linealmente hasta cero en
    braking_time segundos.
    """
    return speed * config.braking_time / 2


def kinematic_braking_distance(speed: float, config: VehicleConfig) -> float:
    """
    Distancia cinemática con frenado normal constante: d = v² / (2a).
    """
    return (speed ** 2) / (2 * config.braking)


def fixed_braking_distance(speed: float, config: VehicleConfig) -> float:
    """
    Distancia constante calculada a velocidad máxima.

    Conservadora: no depende de la velocidad actual.
    """
    return config.max_speed * config.braking_time / 2


BRAKING_DISTANCE_POLICIES: Dict[str, BrakingDistancePolicy] = {
    "proportional": proportional_braking_distance,
    "kinematic": kinematic_braking_distance,
    "fixed": fixed_braking_distance,
}


def get_braking_policy(name: str) -> BrakingDistancePolicy:
    """
    Retorna la política de frenado registrada con ese nombre.

    Raises:
        KeyError: Si la política no existe
    """
    return BRAKING_DISTANCE_POLICIES[name]
