"""
Simulador de tráfico en un tramo con puente y semáforo.

Este módulo contiene el motor de simulación que modela:
- Cinemática de vehículos y distancia de seguimiento
- Cambio de carril entre carril principal y banquina
- Semáforo de dos fases
- Ingreso de vehículos con tasa limitada
"""

from src.utils.exceptions import SimulationError, InvalidConfiguration, InvalidTimeOrdering
from .road import Road, RoadSection
from .traffic_light import TrafficLight, LightState
from .vehicle import Vehicle, VehicleState, VehicleSnapshot, Lane
from .vehicle_spawner import VehicleSpawner
from .traffic_controller import TrafficController, SimulationSnapshot, VehicleSurroundings

__all__ = [
    'SimulationError',
    'InvalidConfiguration',
    'InvalidTimeOrdering',
    'Road',
    'RoadSection',
    'TrafficLight',
    'LightState',
    'Vehicle',
    'VehicleState',
    'VehicleSnapshot',
    'Lane',
    'VehicleSpawner',
    'TrafficController',
    'SimulationSnapshot',
    'VehicleSurroundings'
]
