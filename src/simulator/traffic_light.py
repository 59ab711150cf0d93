"""
Modelo de semáforo de dos fases (verde/rojo).

El semáforo es un temporizador puro: cambia de fase cuando el tiempo
transcurrido desde el último cambio supera la duración de la fase actual.
Las duraciones de verde y rojo son independientes.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from src.utils.config import TrafficLightConfig
from src.utils.exceptions import InvalidTimeOrdering

logger = logging.getLogger(__name__)

# Marca de "último cambio" anterior al inicio de la simulación
NEVER_FLIPPED = -1.0


class LightState(Enum):
    """Estados posibles del semáforo."""
    GREEN = "green"
    RED = "red"


class TrafficLight:
    """
    Semáforo de dos fases con duraciones asimétricas.

    El estado solo cambia dentro de try_update; llamar dos veces con el
    mismo tiempo retorna el mismo resultado.
    """

    def __init__(self, config: TrafficLightConfig = None):
        """
        Inicializa un semáforo.

        Args:
            config: Duraciones de las fases (por defecto TrafficLightConfig())
        """
        self.config = config or TrafficLightConfig()

        self.is_passable = self.config.initially_passable
        self.last_flip_time = NEVER_FLIPPED
        self._last_seen_time: Optional[float] = None

        # Estadísticas
        self.total_cycles_completed = 0
        self.phase_change_history: List[Dict] = []

    @property
    def state(self) -> LightState:
        """Estado actual como LightState."""
        return LightState.GREEN if self.is_passable else LightState.RED

    def get_current_duration(self) -> float:
        """Duración de la fase activa (segundos)."""
        if self.is_passable:
            return self.config.green_duration
        return self.config.red_duration

    def try_update(self, now: float) -> bool:
        """
        Cambia de fase si la fase actual ya cumplió su duración.

        Args:
            now: Tiempo actual de simulación (segundos)

        Returns:
            bool: True si el semáforo está en verde (tras el posible cambio)

        Raises:
            InvalidTimeOrdering: Si now es menor al último tiempo observado
        """
        if self._last_seen_time is not None and now < self._last_seen_time:
            raise InvalidTimeOrdering(now, self._last_seen_time, "semáforo")
        self._last_seen_time = now

        if now > self.last_flip_time + self.get_current_duration():
            self.is_passable = not self.is_passable
            self.last_flip_time = now

            self.phase_change_history.append({
                'time': now,
                'state': self.state.value
            })

            # Un ciclo completo termina al volver a la fase inicial
            if self.is_passable == self.config.initially_passable:
                self.total_cycles_completed += 1

            logger.debug("Semáforo pasa a %s en t=%.2fs", self.state.value, now)

        return self.is_passable

    def get_time_until_change(self, now: float) -> float:
        """
        Calcula cuánto falta para el próximo cambio de fase.

        Args:
            now: Tiempo actual de simulación

        Returns:
            float: Segundos hasta el cambio (0 si ya corresponde cambiar)
        """
        return max(0.0, self.last_flip_time + self.get_current_duration() - now)

    def get_cycle_length(self) -> float:
        """
        Retorna la duración total del ciclo (verde + rojo).

        Returns:
            float: Segundos para completar ambas fases
        """
        return self.config.green_duration + self.config.red_duration

    def get_green_ratio(self) -> float:
        """
        Fracción del ciclo durante la cual el semáforo está en verde.

        Returns:
            float: Ratio entre 0.0 y 1.0
        """
        return self.config.green_duration / self.get_cycle_length()

    def reset(self):
        """Reinicia el semáforo a la fase inicial."""
        self.is_passable = self.config.initially_passable
        self.last_flip_time = NEVER_FLIPPED
        self._last_seen_time = None
        self.total_cycles_completed = 0
        self.phase_change_history.clear()

    def get_status_string(self) -> str:
        """
        Retorna una representación legible del estado actual.

        Returns:
            str: String con estado formateado
        """
        status = f"Semáforo | Estado: {self.state.value.upper()} | "
        status += f"Duración de fase: {self.get_current_duration():.1f}s | "
        status += f"Ciclos: {self.total_cycles_completed}"
        return status

    def __str__(self) -> str:
        return f"TrafficLight({self.state.value})"

    def __repr__(self) -> str:
        return (f"TrafficLight(green={self.config.green_duration}s, "
                f"red={self.config.red_duration}s, "
                f"state={self.state.value})")
