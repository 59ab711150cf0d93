"""
Modelo de vehículo con cinemática y decisión de cambio de carril.

Este módulo implementa el comportamiento de un vehículo individual:
aceleración y frenado según la distancia al vehículo de adelante,
al semáforo y al fin de la banquina, y la decisión de pasar a la
banquina (o volver al carril principal) antes del puente.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.utils.config import VehicleConfig
from src.utils.exceptions import InvalidConfiguration, InvalidTimeOrdering
from .braking import get_braking_policy

logger = logging.getLogger(__name__)

# Velocidad bajo la cual se considera que el vehículo está detenido
STOPPED_SPEED = 0.1  # m/s


class Lane(Enum):
    """Carriles del tramo."""
    MAIN = "main"          # Carril principal (continúa sobre el puente)
    SHOULDER = "shoulder"  # Banquina (solo antes del puente)


class VehicleState(Enum):
    """Decisión cinemática tomada en el último paso."""
    ACCELERATING = "accelerating"
    BRAKING = "braking"
    EMERGENCY_BRAKING = "emergency"
    STOPPED = "stopped"


@dataclass(frozen=True)
class VehicleSnapshot:
    """Estado inmutable de un vehículo, para consumo externo."""
    vehicle_id: int
    x: float
    lane: Lane
    speed: float
    length: float
    state: VehicleState


class Vehicle:
    """
    Representa un vehículo individual en el tramo.

    La posición x corresponde a la parte trasera del vehículo; el frente
    está en x + length. El vehículo solo avanza: x nunca decrece.
    """

    def __init__(self, vehicle_id: int, config: VehicleConfig = None,
                 spawn_time: float = 0.0, x: float = 0.0,
                 lane: Lane = Lane.MAIN, speed: Optional[float] = None):
        """
        Inicializa un vehículo.

        Args:
            vehicle_id: Identificador del vehículo
            config: Parámetros del vehículo (por defecto VehicleConfig())
            spawn_time: Tiempo de ingreso (segundos); es también el tiempo
                        de la última actualización
            x: Posición inicial (metros)
            lane: Carril inicial
            speed: Velocidad inicial (por defecto config.starting_speed)

        Raises:
            InvalidConfiguration: Si la velocidad inicial está fuera de
                                  [0, velocidad máxima del carril]
        """
        self.id = vehicle_id
        self.config = config or VehicleConfig()
        self.length = self.config.length
        self.x = x
        self.lane = lane
        self.speed = self.config.starting_speed if speed is None else speed
        self.spawn_time = spawn_time
        self.last_update_time = spawn_time
        self.state = VehicleState.STOPPED if self.speed < STOPPED_SPEED else VehicleState.ACCELERATING

        if not 0 <= self.speed <= self.max_speed_for_lane():
            raise InvalidConfiguration(
                f"Velocidad inicial fuera de rango para {lane.value}: {self.speed}"
            )

        self._braking_distance_policy = get_braking_policy(self.config.braking_policy)

        # Memoria de cambio de carril (vacía: el primer cambio no espera)
        self.last_lane_change_time: Optional[float] = None
        self.last_lane_change_position: Optional[float] = None

        # Estadísticas
        self.distance_traveled = 0.0
        self.num_stops = 0
        self.total_waiting_time = 0.0
        self.lane_changes = 0
        self._was_stopped = self.speed < STOPPED_SPEED

    def max_speed_for_lane(self, lane: Optional[Lane] = None) -> float:
        """
        Retorna la velocidad máxima para un carril.

        Args:
            lane: Carril a consultar (por defecto el carril actual)

        Returns:
            float: Velocidad máxima en m/s
        """
        lane = lane or self.lane
        if lane == Lane.SHOULDER:
            return self.config.shoulder_max_speed
        return self.config.max_speed

    def braking_distance(self) -> float:
        """Distancia de frenado a la velocidad actual, según la política configurada."""
        return self._braking_distance_policy(self.speed, self.config)

    def is_sufficient_distance(self, distance: float) -> bool:
        """
        Determina si una distancia alcanza para seguir acelerando.

        Args:
            distance: Distancia al obstáculo (metros)

        Returns:
            bool: True si supera la distancia mínima más la de frenado
        """
        return distance > self.config.min_following_gap + self.braking_distance()

    def update(self, gap_ahead: float, gap_to_traffic_light: float,
               gap_to_shoulder_end: float, is_light_passable: bool,
               is_shoulder_lane_available: bool, is_main_lane_available: bool,
               now: float):
        """
        Actualiza velocidad, posición y carril del vehículo.

        Los datos del entorno los calcula el controlador y se asumen ya
        saneados.

        Args:
            gap_ahead: Distancia al vehículo de adelante en el mismo carril
            gap_to_traffic_light: Distancia al semáforo (negativa si ya pasó)
            gap_to_shoulder_end: Distancia al fin de la banquina
            is_light_passable: Si el semáforo está en verde
            is_shoulder_lane_available: Si la banquina está libre a la altura del vehículo
            is_main_lane_available: Si el carril principal está libre a la altura del vehículo
            now: Tiempo actual de simulación (segundos)

        Raises:
            InvalidTimeOrdering: Si now es menor al tiempo de la última actualización
        """
        if now < self.last_update_time:
            raise InvalidTimeOrdering(now, self.last_update_time, f"vehículo #{self.id}")

        dt = now - self.last_update_time
        self.last_update_time = now

        min_gap = self.config.min_following_gap
        speed_threshold = self.max_speed_for_lane()

        has_car_close = not self.is_sufficient_distance(gap_ahead)
        has_shoulder_end_close = (self.lane == Lane.SHOULDER
                                  and not self.is_sufficient_distance(gap_to_shoulder_end))

        # Ya comprometido: dentro de la zona de detención se sigue de largo
        should_ignore_light = (self.is_sufficient_distance(gap_to_traffic_light)
                               or gap_to_traffic_light < min_gap)

        should_accelerate = (self.speed < speed_threshold
                             and not has_car_close
                             and not has_shoulder_end_close
                             and (should_ignore_light or is_light_passable))

        should_emergency_brake = (not should_accelerate
                                  and (gap_ahead < min_gap or gap_to_shoulder_end < min_gap))

        if self.config.can_use_shoulder:
            self._change_lane_if_needed(
                has_car_close=has_car_close,
                is_light_passable=is_light_passable,
                is_shoulder_lane_available=is_shoulder_lane_available,
                is_main_lane_available=is_main_lane_available,
                now=now
            )

        if should_accelerate:
            self._accelerate(dt)
        else:
            self._brake(dt, should_emergency_brake)

        self._update_statistics(dt)

    def _change_lane_if_needed(self, has_car_close: bool, is_light_passable: bool,
                               is_shoulder_lane_available: bool,
                               is_main_lane_available: bool, now: float) -> bool:
        """
        Evalúa y, si corresponde, ejecuta un cambio de carril.

        Returns:
            bool: True si se cambió de carril
        """
        can_switch_to_shoulder = (self.lane == Lane.MAIN
                                  and has_car_close
                                  and self.speed < self.config.lane_change_speed_threshold
                                  and not is_light_passable
                                  and is_shoulder_lane_available)
        can_switch_to_main = self.lane == Lane.SHOULDER and is_main_lane_available

        if not (can_switch_to_shoulder or can_switch_to_main):
            return False

        if (self.last_lane_change_time is not None
                and now - self.last_lane_change_time <= self.config.lane_change_cooldown):
            return False
        if self.last_lane_change_position == self.x:
            return False

        self.last_lane_change_time = now
        self.last_lane_change_position = self.x
        self.lane = Lane.SHOULDER if self.lane == Lane.MAIN else Lane.MAIN
        self.lane_changes += 1

        logger.debug("Vehículo #%d pasa a %s en x=%.1fm (t=%.2fs)",
                     self.id, self.lane.value, self.x, now)
        return True

    def _accelerate(self, dt: float):
        """Acelera sin superar la velocidad máxima del carril y avanza."""
        self.speed = min(self.max_speed_for_lane(), self.speed + self.config.acceleration * dt)
        self.state = VehicleState.ACCELERATING
        self._advance(dt)

    def _brake(self, dt: float, emergency: bool):
        """Frena (normal o de emergencia) sin bajar de cero y avanza."""
        rate = self.config.emergency_braking if emergency else self.config.braking
        self.speed = max(0.0, self.speed - rate * dt)

        if self.speed < STOPPED_SPEED:
            self.state = VehicleState.STOPPED
        elif emergency:
            self.state = VehicleState.EMERGENCY_BRAKING
        else:
            self.state = VehicleState.BRAKING
        self._advance(dt)

    def _advance(self, dt: float):
        # Euler semi-implícito: se usa la velocidad ya actualizada
        distance = self.speed * dt
        self.x += distance
        self.distance_traveled += distance

    def _update_statistics(self, dt: float):
        """
        Actualiza estadísticas del vehículo.

        Args:
            dt: Paso de tiempo
        """
        is_stopped = self.speed < STOPPED_SPEED

        if is_stopped:
            self.total_waiting_time += dt

            # Contar nueva parada
            if not self._was_stopped:
                self.num_stops += 1
                self._was_stopped = True
        else:
            self._was_stopped = False

    def snapshot(self) -> VehicleSnapshot:
        """Retorna el estado actual como valor inmutable."""
        return VehicleSnapshot(
            vehicle_id=self.id,
            x=self.x,
            lane=self.lane,
            speed=self.speed,
            length=self.length,
            state=self.state
        )

    def get_travel_time(self) -> float:
        """Tiempo transcurrido desde el ingreso hasta la última actualización."""
        return self.last_update_time - self.spawn_time

    def get_average_speed_kmh(self) -> float:
        """
        Calcula la velocidad promedio desde el ingreso.

        Returns:
            float: Velocidad promedio en km/h
        """
        travel_time = self.get_travel_time()
        if travel_time <= 0:
            return 0.0
        return self.distance_traveled / travel_time * 3.6

    def get_statistics(self) -> dict:
        """
        Retorna un diccionario con todas las estadísticas del vehículo.

        Returns:
            dict: Estadísticas completas
        """
        return {
            'vehicle_id': self.id,
            'spawn_time': self.spawn_time,
            'travel_time': self.get_travel_time(),
            'position': self.x,
            'lane': self.lane.value,
            'distance_traveled': self.distance_traveled,
            'avg_speed_kmh': self.get_average_speed_kmh(),
            'total_waiting_time': self.total_waiting_time,
            'num_stops': self.num_stops,
            'lane_changes': self.lane_changes,
        }

    def get_status_string(self) -> str:
        """
        Retorna una representación legible del estado actual.

        Returns:
            str: String con estado formateado
        """
        status = f"Vehículo #{self.id} | "
        status += f"Estado: {self.state.value.upper()} | "
        status += f"Carril: {self.lane.value} | "
        status += f"Velocidad: {self.speed * 3.6:.1f} km/h | "
        status += f"Posición: {self.x:.1f}m | "
        status += f"Paradas: {self.num_stops}"
        return status

    def __str__(self) -> str:
        return f"Vehicle(#{self.id}, {self.lane.value})"

    def __repr__(self) -> str:
        return (f"Vehicle(id={self.id}, x={self.x:.2f}, lane={self.lane.value}, "
                f"speed={self.speed:.2f}m/s)")
