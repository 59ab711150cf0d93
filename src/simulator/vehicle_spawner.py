"""
Generador de vehículos con tasa limitada.

Admite vehículos en la entrada del tramo respetando un intervalo mínimo
entre llegadas (1 / intensidad) y, opcionalmente, un tope de vehículos.
"""

import logging
from typing import Dict, Optional

from src.utils.config import SpawnerConfig, VehicleConfig
from src.utils.exceptions import InvalidTimeOrdering
from .vehicle import Lane, Vehicle

logger = logging.getLogger(__name__)


class VehicleSpawner:
    """
    Fábrica de vehículos limitada por tasa.

    Los vehículos se crean en x = 0, en el carril principal, con la
    velocidad inicial configurada. Los ids son secuenciales por generador.
    """

    def __init__(self, config: SpawnerConfig = None, vehicle_config: VehicleConfig = None):
        """
        Inicializa el generador.

        Args:
            config: Intensidad y tope (por defecto SpawnerConfig())
            vehicle_config: Parámetros de los vehículos generados
        """
        self.config = config or SpawnerConfig()
        self.vehicle_config = vehicle_config or VehicleConfig()

        self.vehicles_produced = 0
        self.last_produced_time: Optional[float] = None
        self._last_seen_time: Optional[float] = None

    @property
    def is_exhausted(self) -> bool:
        """Si ya se alcanzó el tope de vehículos."""
        return (self.config.max_vehicles is not None
                and self.vehicles_produced >= self.config.max_vehicles)

    def can_produce(self, now: float) -> bool:
        """
        Determina si en este instante se puede generar un vehículo.

        Args:
            now: Tiempo actual de simulación (segundos)

        Returns:
            bool: True si no se alcanzó el tope y pasó el intervalo mínimo
        """
        if self.is_exhausted:
            return False
        if self.last_produced_time is None:
            return True
        return now > self.last_produced_time + self.config.interval

    def try_produce(self, now: float) -> Optional[Vehicle]:
        """
        Genera un vehículo si el tope y la tasa lo permiten.

        Args:
            now: Tiempo actual de simulación (segundos)

        Returns:
            Vehicle: Nuevo vehículo, o None si no corresponde generar

        Raises:
            InvalidTimeOrdering: Si now es menor al último tiempo observado
        """
        if self._last_seen_time is not None and now < self._last_seen_time:
            raise InvalidTimeOrdering(now, self._last_seen_time, "generador")
        self._last_seen_time = now

        if not self.can_produce(now):
            return None

        self.vehicles_produced += 1
        self.last_produced_time = now

        vehicle = Vehicle(
            vehicle_id=self.vehicles_produced,
            config=self.vehicle_config,
            spawn_time=now,
            x=0.0,
            lane=Lane.MAIN
        )
        logger.debug("Generado %r en t=%.2fs", vehicle, now)
        return vehicle

    def get_spawn_statistics(self, now: Optional[float] = None) -> Dict:
        """
        Retorna estadísticas de generación de vehículos.

        Args:
            now: Tiempo actual, para calcular la tasa observada

        Returns:
            dict: Estadísticas de generación
        """
        if now is not None and now > 0:
            actual_rate = self.vehicles_produced / now
        else:
            actual_rate = 0.0

        return {
            'total_generated': self.vehicles_produced,
            'target_rate_per_second': self.config.intensity,
            'actual_rate_per_second': actual_rate,
            'max_vehicles': self.config.max_vehicles,
            'exhausted': self.is_exhausted,
        }

    def reset(self):
        """Reinicia el generador."""
        self.vehicles_produced = 0
        self.last_produced_time = None
        self._last_seen_time = None
