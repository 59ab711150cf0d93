"""
Configuración del simulador de tramo con puente y semáforo.

Este módulo contiene los objetos de configuración que se pasan
explícitamente a cada componente (controlador, vehículos, generador,
semáforo). Ningún componente lee estado global del proceso, lo que
permite correr varias simulaciones independientes en paralelo.

Todas las magnitudes están en metros, segundos y m/s.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from src.utils.exceptions import InvalidConfiguration

# Políticas de distancia de frenado disponibles (ver src.simulator.braking)
BRAKING_POLICIES = ("proportional", "kinematic", "fixed")

# Paso de simulación por defecto para corridas sin interfaz
DEFAULT_TIME_STEP = 0.1  # segundos


def _require_positive(name: str, value: float):
    if value <= 0:
        raise InvalidConfiguration(f"{name} debe ser positivo: {value}")


def _require_non_negative(name: str, value: float):
    if value < 0:
        raise InvalidConfiguration(f"{name} no puede ser negativo: {value}")


@dataclass(frozen=True)
class RoadConfig:
    """
    Geometría estática del tramo.

    El origen (x = 0) es la entrada del tramo. El carril de banquina existe
    solo antes del puente; el semáforo está después del puente.

    Attributes:
        distance_to_bridge: Distancia desde la entrada hasta el inicio del puente
        bridge_length: Longitud del puente (un solo carril)
        distance_bridge_to_light: Distancia desde el fin del puente al semáforo
        entry_clearance: Holgura extra de la zona de entrada, además del largo del vehículo
        lane_clearance: Holgura de la ventana de ocupación para cambio de carril
    """
    distance_to_bridge: float = 300.0
    bridge_length: float = 100.0
    distance_bridge_to_light: float = 100.0
    entry_clearance: float = 5.0
    lane_clearance: float = 2.0

    def __post_init__(self):
        _require_positive("distance_to_bridge", self.distance_to_bridge)
        _require_positive("bridge_length", self.bridge_length)
        _require_non_negative("distance_bridge_to_light", self.distance_bridge_to_light)
        _require_non_negative("entry_clearance", self.entry_clearance)
        _require_non_negative("lane_clearance", self.lane_clearance)

    @property
    def light_position(self) -> float:
        """Posición longitudinal del semáforo."""
        return self.distance_to_bridge + self.bridge_length + self.distance_bridge_to_light


@dataclass(frozen=True)
class VehicleConfig:
    """
    Parámetros ajustables de cada vehículo.

    Attributes:
        length: Largo del vehículo (m)
        max_speed: Velocidad máxima en el carril principal (m/s)
        shoulder_max_speed: Velocidad máxima en la banquina (m/s)
        acceleration: Aceleración (m/s²)
        braking: Frenado normal (m/s²)
        emergency_braking: Frenado de emergencia (m/s²)
        min_following_gap: Distancia mínima al objeto de adelante (m)
        braking_time: Horizonte de frenado usado por la política (s)
        braking_policy: Política de distancia de frenado ("proportional",
                        "kinematic" o "fixed")
        lane_change_cooldown: Tiempo mínimo entre cambios de carril (s)
        lane_change_speed_threshold: Velocidad bajo la cual se permite
                                     pasar a la banquina (m/s)
        can_use_shoulder: Si el vehículo puede usar la banquina
        starting_speed: Velocidad al ingresar al tramo (m/s)
    """
    length: float = 4.5
    max_speed: float = 12.5  # 45 km/h
    shoulder_max_speed: float = 8.0
    acceleration: float = 2.0
    braking: float = 3.0
    emergency_braking: float = 8.0
    min_following_gap: float = 5.0
    braking_time: float = 2.5
    braking_policy: str = "proportional"
    lane_change_cooldown: float = 5.0
    lane_change_speed_threshold: float = 5.0
    can_use_shoulder: bool = True
    starting_speed: float = 0.0

    def __post_init__(self):
        _require_positive("length", self.length)
        _require_positive("max_speed", self.max_speed)
        _require_positive("shoulder_max_speed", self.shoulder_max_speed)
        _require_positive("acceleration", self.acceleration)
        _require_positive("braking", self.braking)
        _require_positive("emergency_braking", self.emergency_braking)
        _require_non_negative("min_following_gap", self.min_following_gap)
        _require_non_negative("braking_time", self.braking_time)
        _require_non_negative("lane_change_cooldown", self.lane_change_cooldown)
        _require_non_negative("lane_change_speed_threshold", self.lane_change_speed_threshold)
        _require_non_negative("starting_speed", self.starting_speed)

        if self.shoulder_max_speed > self.max_speed:
            raise InvalidConfiguration(
                f"shoulder_max_speed ({self.shoulder_max_speed}) no puede superar "
                f"max_speed ({self.max_speed})"
            )
        if self.emergency_braking < self.braking:
            raise InvalidConfiguration(
                f"emergency_braking ({self.emergency_braking}) debe ser al menos "
                f"braking ({self.braking})"
            )
        # Quien entra a la banquina nunca debe superar su límite
        if self.lane_change_speed_threshold > self.shoulder_max_speed:
            raise InvalidConfiguration(
                f"lane_change_speed_threshold ({self.lane_change_speed_threshold}) "
                f"no puede superar shoulder_max_speed ({self.shoulder_max_speed})"
            )
        if self.starting_speed > self.max_speed:
            raise InvalidConfiguration(
                f"starting_speed ({self.starting_speed}) no puede superar "
                f"max_speed ({self.max_speed})"
            )
        if self.braking_policy not in BRAKING_POLICIES:
            raise InvalidConfiguration(
                f"Política de frenado desconocida: {self.braking_policy!r} "
                f"(opciones: {', '.join(BRAKING_POLICIES)})"
            )


@dataclass(frozen=True)
class SpawnerConfig:
    """
    Parámetros del generador de vehículos.

    Attributes:
        intensity: Vehículos por segundo (inverso del intervalo entre llegadas)
        max_vehicles: Tope de vehículos a generar (None = sin tope)
    """
    intensity: float = 0.5
    max_vehicles: Optional[int] = None

    def __post_init__(self):
        _require_positive("intensity", self.intensity)
        if self.max_vehicles is not None and self.max_vehicles < 0:
            raise InvalidConfiguration(
                f"max_vehicles no puede ser negativo: {self.max_vehicles}"
            )

    @property
    def interval(self) -> float:
        """Intervalo mínimo entre vehículos generados (segundos)."""
        return 1.0 / self.intensity


@dataclass(frozen=True)
class TrafficLightConfig:
    """
    Duraciones de las dos fases del semáforo.

    Attributes:
        green_duration: Duración de la fase verde (segundos)
        red_duration: Duración de la fase roja (segundos)
        initially_passable: Fase inicial (True = verde)
    """
    green_duration: float = 10.0
    red_duration: float = 15.0
    initially_passable: bool = True

    def __post_init__(self):
        _require_positive("green_duration", self.green_duration)
        _require_positive("red_duration", self.red_duration)


@dataclass(frozen=True)
class SimulationConfig:
    """Configuración completa de una simulación."""
    road: RoadConfig = field(default_factory=RoadConfig)
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    spawner: SpawnerConfig = field(default_factory=SpawnerConfig)
    traffic_light: TrafficLightConfig = field(default_factory=TrafficLightConfig)


# Logging
class LoggingConfig:
    """Configuración de logging."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[Union[int, str]] = None,
                  log_file: Optional[Union[str, Path]] = None):
    """
    Configura el logger raíz con salida a consola (y opcionalmente a archivo).

    Los módulos del simulador solo emiten mensajes; la configuración de
    handlers queda a cargo de los scripts que los usan.

    Args:
        level: Nivel mínimo (por defecto LoggingConfig.LOG_LEVEL)
        log_file: Ruta de un archivo de log adicional (opcional)
    """
    root = logging.getLogger()
    root.setLevel(level if level is not None else LoggingConfig.LOG_LEVEL)

    formatter = logging.Formatter(LoggingConfig.LOG_FORMAT)

    root.handlers.clear()
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
