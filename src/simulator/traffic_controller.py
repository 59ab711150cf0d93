"""
Motor principal de simulación del tramo con puente.

Este módulo implementa el controlador que coordina todos los componentes:
generador de vehículos, semáforo y vehículos. En cada paso calcula los
datos del entorno de cada vehículo (distancias y ocupación de carriles),
actualiza los vehículos y emite un estado inmutable para el renderizado
externo.
"""

import logging
import time as timer
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from src.utils.config import DEFAULT_TIME_STEP, SimulationConfig
from src.utils.exceptions import InvalidConfiguration, InvalidTimeOrdering
from src.utils.metrics import MetricsCalculator
from .road import Road
from .traffic_light import LightState, TrafficLight
from .vehicle import Lane, Vehicle, VehicleSnapshot
from .vehicle_spawner import VehicleSpawner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VehicleSurroundings:
    """Datos del entorno de un vehículo, calculados antes de actualizarlo."""
    gap_ahead: float
    gap_to_traffic_light: float
    gap_to_shoulder_end: float
    is_shoulder_lane_available: bool
    is_main_lane_available: bool


@dataclass(frozen=True)
class SimulationSnapshot:
    """
    Estado inmutable de la simulación tras un paso.

    Es el único contrato con el renderizado: lista ordenada de vehículos
    (orden de ingreso) y si el semáforo está en verde.
    """
    time: float
    vehicles: Tuple[VehicleSnapshot, ...]
    is_light_passable: bool

    @property
    def light_state(self) -> LightState:
        return LightState.GREEN if self.is_light_passable else LightState.RED

    @property
    def vehicle_count(self) -> int:
        return len(self.vehicles)

    def vehicles_in_lane(self, lane: Lane) -> Tuple[VehicleSnapshot, ...]:
        return tuple(v for v in self.vehicles if v.lane == lane)


class TrafficController:
    """
    Orquestador del tramo.

    Es dueño exclusivo de la colección de vehículos. Cada paso usa un
    modelo de dos pasadas: primero se calculan los datos del entorno de
    todos los vehículos con las posiciones al inicio del paso, y luego se
    actualizan todos en orden de ingreso. Así el resultado no depende del
    orden de iteración.
    """

    def __init__(self, config: SimulationConfig = None,
                 spawner: VehicleSpawner = None,
                 traffic_light: TrafficLight = None,
                 record_history: bool = False):
        """
        Inicializa el controlador.

        Args:
            config: Configuración completa (por defecto SimulationConfig())
            spawner: Generador a usar (por defecto uno construido desde config)
            traffic_light: Semáforo a usar (por defecto uno construido desde config)
            record_history: Si True, guarda en memoria el estado de cada paso
        """
        self.config = config or SimulationConfig()
        self.road = Road(self.config.road)
        self.spawner = spawner or VehicleSpawner(self.config.spawner, self.config.vehicle)
        self.traffic_light = traffic_light or TrafficLight(self.config.traffic_light)

        # Vehículos en orden de ingreso
        self.vehicles: List[Vehicle] = []

        # Estado de simulación
        self.current_time: Optional[float] = None
        self.record_history = record_history
        self.history: List[SimulationSnapshot] = []

        logger.info("Controlador inicializado: %r, %r", self.road, self.traffic_light)

    def tick(self, now: float) -> SimulationSnapshot:
        """
        Avanza la simulación hasta el tiempo dado.

        Args:
            now: Tiempo actual de simulación (segundos), suministrado por
                 el driver externo

        Returns:
            SimulationSnapshot: Estado tras el paso

        Raises:
            InvalidTimeOrdering: Si now es menor al tiempo del paso anterior;
                                 en ese caso el estado no se modifica
        """
        if self.current_time is not None and now < self.current_time:
            raise InvalidTimeOrdering(now, self.current_time, "controlador")
        self.current_time = now

        # 1. Ingreso de vehículos
        if self.is_entry_zone_free():
            vehicle = self.spawner.try_produce(now)
            if vehicle is not None:
                self.vehicles.append(vehicle)

        # 2. Semáforo
        is_light_passable = self.traffic_light.try_update(now)

        # 3. Vehículos: primero se observa, luego se actualiza
        surroundings = [self._sense(index) for index in range(len(self.vehicles))]
        for vehicle, facts in zip(self.vehicles, surroundings):
            vehicle.update(
                gap_ahead=facts.gap_ahead,
                gap_to_traffic_light=facts.gap_to_traffic_light,
                gap_to_shoulder_end=facts.gap_to_shoulder_end,
                is_light_passable=is_light_passable,
                is_shoulder_lane_available=facts.is_shoulder_lane_available,
                is_main_lane_available=facts.is_main_lane_available,
                now=now
            )

        # 4. Estado para consumo externo
        snapshot = SimulationSnapshot(
            time=now,
            vehicles=tuple(v.snapshot() for v in self.vehicles),
            is_light_passable=is_light_passable
        )
        if self.record_history:
            self.history.append(snapshot)
        return snapshot

    def is_entry_zone_free(self) -> bool:
        """Si ningún vehículo ocupa la zona de entrada del tramo."""
        return not any(self.road.is_in_entry_zone(v.x, v.length) for v in self.vehicles)

    def surroundings_of(self, vehicle: Vehicle) -> VehicleSurroundings:
        """
        Calcula los datos del entorno de un vehículo con el estado actual.

        Args:
            vehicle: Vehículo perteneciente a este controlador

        Returns:
            VehicleSurroundings: Distancias y disponibilidad de carriles
        """
        return self._sense(self._index_of(vehicle))

    def gap_ahead(self, vehicle: Vehicle) -> float:
        """
        Distancia desde el frente del vehículo a la trasera del de adelante.

        Solo considera vehículos del mismo carril. Con posiciones idénticas,
        se considera adelante al que ingresó primero.

        Returns:
            float: Distancia en metros (infinito si no hay nadie adelante)
        """
        return self._gap_ahead(self._index_of(vehicle))

    def is_lane_available(self, vehicle: Vehicle, lane: Lane) -> bool:
        """
        Determina si un carril está libre a la altura del vehículo.

        Además de la ventana de ocupación, el vehículo que quedaría atrás
        debe tener distancia suficiente para frenar, y el propio vehículo
        debe tenerla respecto al que quedaría adelante. La banquina también
        exige que el vehículo entero quepa antes del puente.

        Args:
            vehicle: Vehículo que evalúa el cambio
            lane: Carril destino

        Returns:
            bool: True si el vehículo puede incorporarse al carril sin
                  superponerse con otro
        """
        if lane == Lane.SHOULDER and not self.road.is_shoulder_reachable(vehicle.x, vehicle.length):
            return False

        clearance = self.config.road.lane_clearance
        low = vehicle.x - vehicle.length - clearance
        high = vehicle.x + vehicle.length + clearance

        others = [other for other in self.vehicles
                  if other is not vehicle and other.lane == lane]
        if any(low <= other.x <= high for other in others):
            return False

        behind = max((o for o in others if o.x < vehicle.x), key=lambda o: o.x, default=None)
        if behind is not None and not behind.is_sufficient_distance(
                vehicle.x - behind.x - behind.length):
            return False

        ahead = min((o for o in others if o.x > vehicle.x), key=lambda o: o.x, default=None)
        if ahead is not None and not vehicle.is_sufficient_distance(
                ahead.x - vehicle.x - vehicle.length):
            return False

        return True

    def vehicles_in_lane(self, lane: Lane) -> List[Vehicle]:
        """Vehículos actualmente en un carril, en orden de ingreso."""
        return [v for v in self.vehicles if v.lane == lane]

    def _index_of(self, vehicle: Vehicle) -> int:
        for index, candidate in enumerate(self.vehicles):
            if candidate is vehicle:
                return index
        raise ValueError(f"{vehicle!r} no pertenece a este controlador")

    def _gap_ahead(self, index: int) -> float:
        vehicle = self.vehicles[index]
        gap = float('inf')

        for other_index, other in enumerate(self.vehicles):
            if other_index == index or other.lane != vehicle.lane:
                continue
            is_ahead = other.x > vehicle.x or (other.x == vehicle.x and other_index < index)
            if is_ahead:
                gap = min(gap, other.x - vehicle.x - vehicle.length)

        return gap

    def _sense(self, index: int) -> VehicleSurroundings:
        vehicle = self.vehicles[index]
        return VehicleSurroundings(
            gap_ahead=self._gap_ahead(index),
            gap_to_traffic_light=self.road.gap_to_traffic_light(vehicle.x, vehicle.length),
            gap_to_shoulder_end=self.road.gap_to_shoulder_end(vehicle.x, vehicle.length),
            is_shoulder_lane_available=self.is_lane_available(vehicle, Lane.SHOULDER),
            is_main_lane_available=self.is_lane_available(vehicle, Lane.MAIN)
        )

    def run(self, duration: float, dt: float = DEFAULT_TIME_STEP) -> List[SimulationSnapshot]:
        """
        Ejecuta la simulación sin interfaz con paso fijo.

        Si el controlador aún no avanzó, el primer paso es en t = 0;
        si no, continúa desde el último tiempo.

        Args:
            duration: Duración a simular (segundos)
            dt: Paso de tiempo (segundos)

        Returns:
            list: Estado de cada paso ejecutado
        """
        if dt <= 0:
            raise InvalidConfiguration(f"dt debe ser positivo: {dt}")
        if duration < 0:
            raise InvalidConfiguration(f"duration no puede ser negativa: {duration}")

        num_steps = int(round(duration / dt))
        if self.current_time is None:
            start, first_step = 0.0, 0
        else:
            start, first_step = self.current_time, 1

        logger.info("Iniciando simulación: %.1fs con dt=%.3fs", duration, dt)
        real_time_start = timer.time()

        snapshots = [self.tick(start + step * dt) for step in range(first_step, num_steps + 1)]

        logger.info("Simulación completada: %d vehículos en %.2fs de cómputo",
                    len(self.vehicles), timer.time() - real_time_start)
        return snapshots

    def get_current_state(self) -> Dict:
        """
        Retorna el estado actual resumido de la simulación.

        Returns:
            dict: Estado actual
        """
        return {
            'time': self.current_time,
            'vehicles': len(self.vehicles),
            'vehicles_main_lane': len(self.vehicles_in_lane(Lane.MAIN)),
            'vehicles_shoulder_lane': len(self.vehicles_in_lane(Lane.SHOULDER)),
            'traffic_light': self.traffic_light.state.value,
            'spawner': self.spawner.get_spawn_statistics(self.current_time),
        }

    def calculate_final_metrics(self) -> Dict:
        """
        Calcula métricas de la simulación hasta el momento.

        Returns:
            dict: Diccionario con todas las métricas
        """
        calc = MetricsCalculator
        simulation_time = self.current_time or 0.0
        passed = [v for v in self.vehicles if v.x >= self.road.light_position]

        return {
            'simulation_time': simulation_time,
            'vehicles_generated': self.spawner.vehicles_produced,
            'vehicles_active': len(self.vehicles),
            'vehicles_past_light': len(passed),
            'throughput_per_hour': calc.throughput(passed, simulation_time),
            'avg_speed_kmh': calc.average_speed(self.vehicles),
            'avg_waiting_time': calc.average_waiting_time(self.vehicles),
            'avg_stops': calc.average_stops(self.vehicles),
            'lane_changes': calc.total_lane_changes(self.vehicles),
            'light_cycles': self.traffic_light.total_cycles_completed,
        }

    def reset(self):
        """Reinicia el controlador al estado inicial."""
        self.vehicles.clear()
        self.history.clear()
        self.current_time = None
        self.spawner.reset()
        self.traffic_light.reset()
