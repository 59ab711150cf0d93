"""
Geometría del tramo de ruta con puente y semáforo.

El tramo es de un solo sentido. Desde la entrada (x = 0) hasta el inicio
del puente existen dos carriles: el principal y la banquina. Sobre el
puente solo hay un carril, y el semáforo está a cierta distancia del fin
del puente.

    entrada        puente           semáforo
    |-------------|========|--------|------->
    0      distance_to_bridge      light_position
"""

from enum import Enum
from typing import Dict

from src.utils.config import RoadConfig


class RoadSection(Enum):
    """Secciones longitudinales del tramo."""
    APPROACH = "approach"      # Antes del puente (hay banquina)
    BRIDGE = "bridge"          # Sobre el puente (un solo carril)
    EXIT = "exit"              # Entre el puente y el semáforo
    PAST_LIGHT = "past_light"  # Después del semáforo


class Road:
    """
    Consultas geométricas sobre el tramo.

    Todas las distancias son con signo: un valor negativo indica que el
    frente del vehículo ya pasó el punto de referencia.
    """

    def __init__(self, config: RoadConfig = None):
        """
        Inicializa la geometría del tramo.

        Args:
            config: Geometría del tramo (por defecto RoadConfig())
        """
        self.config = config or RoadConfig()

    @property
    def bridge_start(self) -> float:
        """Posición de inicio del puente (fin de la banquina)."""
        return self.config.distance_to_bridge

    @property
    def bridge_end(self) -> float:
        """Posición de fin del puente."""
        return self.config.distance_to_bridge + self.config.bridge_length

    @property
    def light_position(self) -> float:
        """Posición del semáforo."""
        return self.config.light_position

    @property
    def shoulder_end(self) -> float:
        """La banquina termina donde empieza el puente."""
        return self.bridge_start

    def gap_to_traffic_light(self, x: float, length: float) -> float:
        """
        Distancia desde el frente del vehículo hasta el semáforo.

        Args:
            x: Posición del vehículo (parte trasera)
            length: Largo del vehículo

        Returns:
            float: Distancia en metros (negativa si ya lo pasó)
        """
        return self.light_position - x - length

    def gap_to_shoulder_end(self, x: float, length: float) -> float:
        """
        Distancia desde el frente del vehículo hasta el fin de la banquina.

        Args:
            x: Posición del vehículo (parte trasera)
            length: Largo del vehículo

        Returns:
            float: Distancia en metros (negativa si ya lo pasó)
        """
        return self.shoulder_end - x - length

    def is_shoulder_reachable(self, x: float, length: float) -> bool:
        """Si el vehículo entero cabe en la banquina en esta posición."""
        return x + length < self.shoulder_end

    def is_in_entry_zone(self, x: float, length: float) -> bool:
        """
        Si un vehículo en x ocupa la zona de entrada.

        La zona abarca el largo del propio vehículo más la holgura de entrada.
        """
        return x < length + self.config.entry_clearance

    def section_at(self, x: float) -> RoadSection:
        """
        Clasifica una posición según la sección del tramo.

        Args:
            x: Posición longitudinal (metros)

        Returns:
            RoadSection: Sección que contiene la posición
        """
        if x < self.bridge_start:
            return RoadSection.APPROACH
        elif x < self.bridge_end:
            return RoadSection.BRIDGE
        elif x < self.light_position:
            return RoadSection.EXIT
        else:
            return RoadSection.PAST_LIGHT

    def get_road_stats(self) -> Dict:
        """
        Retorna un resumen de la geometría del tramo.

        Returns:
            dict: Longitudes de cada sección
        """
        return {
            'approach_length_m': self.bridge_start,
            'bridge_length_m': self.config.bridge_length,
            'exit_length_m': self.config.distance_bridge_to_light,
            'light_position_m': self.light_position,
        }

    def __repr__(self) -> str:
        return (f"Road(bridge={self.bridge_start:.0f}-{self.bridge_end:.0f}m, "
                f"light={self.light_position:.0f}m)")
