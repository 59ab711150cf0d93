"""
Tests para el controlador de la simulación (TrafficController).
"""

import dataclasses

import pytest
import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.simulator.traffic_controller import TrafficController, SimulationSnapshot
from src.simulator.traffic_light import LightState
from src.simulator.vehicle import Vehicle, VehicleState, Lane
from src.utils.config import SimulationConfig, SpawnerConfig, TrafficLightConfig, VehicleConfig
from src.utils.exceptions import InvalidConfiguration, InvalidTimeOrdering


def controller_without_spawning(vehicle_config: VehicleConfig = None) -> TrafficController:
    """Controlador que no genera vehículos; se agregan a mano."""
    config = SimulationConfig(
        vehicle=vehicle_config or VehicleConfig(),
        spawner=SpawnerConfig(max_vehicles=0)
    )
    return TrafficController(config)


def assert_no_overlap(snapshot: SimulationSnapshot):
    """En cada carril, el frente de un vehículo no pasa la trasera del siguiente."""
    for lane in Lane:
        ordered = sorted(snapshot.vehicles_in_lane(lane), key=lambda v: v.x)
        for rear, front in zip(ordered, ordered[1:]):
            assert rear.x + rear.length <= front.x, (snapshot.time, rear, front)


class TestTick:
    """Tests del paso de simulación."""

    def test_first_tick_spawns_vehicle(self):
        """Con la entrada libre, el primer paso genera un vehículo."""
        controller = TrafficController()

        snapshot = controller.tick(0.0)

        assert isinstance(snapshot, SimulationSnapshot)
        assert snapshot.time == 0.0
        assert snapshot.vehicle_count == 1
        assert snapshot.vehicles[0].vehicle_id == 1
        assert snapshot.is_light_passable is True
        assert snapshot.light_state == LightState.GREEN

    def test_empty_tick(self):
        """Sin vehículos, el paso solo actualiza el semáforo."""
        controller = controller_without_spawning()

        snapshot = controller.tick(0.0)

        assert snapshot.vehicles == ()
        assert snapshot.is_light_passable is True

    def test_entry_zone_blocks_spawning(self):
        """No se genera otro vehículo mientras la entrada esté ocupada."""
        config = SimulationConfig(spawner=SpawnerConfig(intensity=1.0))
        controller = TrafficController(config)

        controller.tick(0.0)
        controller.tick(2.1)
        # El primero está en x = 8.82, todavía dentro de los 9.5m de entrada
        assert controller.vehicles[0].x == pytest.approx(8.82)
        assert len(controller.vehicles) == 1

        controller.tick(3.0)
        assert len(controller.vehicles) == 1

        controller.tick(4.0)
        assert len(controller.vehicles) == 2

    def test_spawn_cap_through_run(self):
        """Con tope 2, al cabo de 120s hay exactamente 2 vehículos."""
        config = SimulationConfig(spawner=SpawnerConfig(intensity=1.0, max_vehicles=2))
        controller = TrafficController(config)

        controller.run(duration=120.0, dt=0.1)

        assert len(controller.vehicles) == 2
        assert controller.spawner.vehicles_produced == 2

    def test_emergency_braking_behind_stopped_car(self):
        """Vehículo de atrás muy cerca: frena de emergencia; el de adelante acelera."""
        controller = controller_without_spawning(VehicleConfig(min_following_gap=20))
        lead = Vehicle(1, controller.config.vehicle, x=110.0)
        rear = Vehicle(2, controller.config.vehicle, x=100.0, speed=10.0)
        controller.vehicles.extend([lead, rear])

        assert controller.gap_ahead(rear) == pytest.approx(5.5)
        assert controller.gap_ahead(lead) == float('inf')

        controller.tick(1.0)

        assert rear.state == VehicleState.EMERGENCY_BRAKING
        assert rear.speed == pytest.approx(10.0 - controller.config.vehicle.emergency_braking)
        assert lead.state == VehicleState.ACCELERATING
        assert lead.x == pytest.approx(112.0)

    def test_return_to_main_lane_before_bridge(self):
        """En banquina cerca del puente, el vehículo vuelve al carril principal."""
        controller = controller_without_spawning(VehicleConfig(min_following_gap=20))
        merging = Vehicle(1, controller.config.vehicle, x=280.0, lane=Lane.SHOULDER, speed=3.0)
        lead = Vehicle(2, controller.config.vehicle, x=310.0)
        controller.vehicles.extend([merging, lead])

        assert controller.gap_ahead(merging) == float('inf')
        assert controller.is_lane_available(merging, Lane.MAIN)

        controller.tick(1.0)

        assert merging.lane == Lane.MAIN
        assert lead.x == pytest.approx(312.0)
        # Ahora sigue al vehículo del carril principal
        assert controller.gap_ahead(merging) == pytest.approx(312.0 - 280.0 - 4.5)

    def test_time_going_backwards(self):
        """Un tiempo menor al anterior se rechaza sin modificar el estado."""
        controller = TrafficController()
        controller.tick(0.0)
        controller.tick(5.0)
        position = controller.vehicles[0].x

        with pytest.raises(InvalidTimeOrdering):
            controller.tick(4.0)

        assert controller.current_time == 5.0
        assert controller.vehicles[0].x == position
        assert len(controller.vehicles) == 1

    def test_update_order_does_not_matter(self):
        """El resultado no depende del orden de la colección."""
        def positions_after_tick(order):
            controller = controller_without_spawning()
            vehicles = {
                'rear': Vehicle(1, controller.config.vehicle, x=10.0),
                'lead': Vehicle(2, controller.config.vehicle, x=20.0),
            }
            controller.vehicles.extend(vehicles[name] for name in order)
            controller.tick(1.0)
            return {v.id: (v.x, v.speed, v.lane) for v in controller.vehicles}

        assert positions_after_tick(['rear', 'lead']) == positions_after_tick(['lead', 'rear'])

    def test_snapshot_is_immutable(self):
        """El estado emitido no cambia con pasos posteriores."""
        controller = TrafficController()
        first = controller.tick(0.0)
        controller.tick(3.0)

        assert first.vehicles[0].x == 0.0
        assert controller.vehicles[0].x > 0.0

        with pytest.raises(dataclasses.FrozenInstanceError):
            first.time = 10.0

    def test_vehicles_in_lane_snapshot(self):
        """Test de filtrado por carril en el estado emitido."""
        controller = controller_without_spawning()
        controller.vehicles.extend([
            Vehicle(1, controller.config.vehicle, x=50.0),
            Vehicle(2, controller.config.vehicle, x=50.0, lane=Lane.SHOULDER),
        ])

        snapshot = controller.tick(0.0)

        assert [v.vehicle_id for v in snapshot.vehicles_in_lane(Lane.SHOULDER)] == [2]
        assert [v.vehicle_id for v in snapshot.vehicles_in_lane(Lane.MAIN)] == [1]


class TestSurroundings:
    """Tests de cálculo de distancias y ocupación de carriles."""

    def test_tie_break_by_spawn_order(self):
        """Con posiciones idénticas, el que ingresó primero está adelante."""
        controller = controller_without_spawning()
        first = Vehicle(1, controller.config.vehicle, x=50.0)
        second = Vehicle(2, controller.config.vehicle, x=50.0)
        controller.vehicles.extend([first, second])

        assert controller.gap_ahead(first) == float('inf')
        assert controller.gap_ahead(second) == pytest.approx(-4.5)

    def test_gap_ignores_other_lane(self):
        """Solo cuenta el carril propio."""
        controller = controller_without_spawning()
        main = Vehicle(1, controller.config.vehicle, x=50.0)
        shoulder = Vehicle(2, controller.config.vehicle, x=60.0, lane=Lane.SHOULDER)
        controller.vehicles.extend([main, shoulder])

        assert controller.gap_ahead(main) == float('inf')

    def test_nearest_vehicle_ahead(self):
        """La distancia es al vehículo más cercano de adelante."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=10.0)
        controller.vehicles.extend([
            Vehicle(2, controller.config.vehicle, x=80.0),
            Vehicle(3, controller.config.vehicle, x=30.0),
            vehicle,
        ])

        assert controller.gap_ahead(vehicle) == pytest.approx(15.5)

    @pytest.mark.parametrize("other_x, available", [
        (106.0, False),
        (107.0, True),
        (94.0, False),
        (93.0, True),
        (100.0, False),
    ])
    def test_lane_availability_window(self, other_x, available):
        """La ventana de ocupación es x ± (largo + holgura)."""
        # Sin distancia mínima, vehículos detenidos solo chocan con la ventana
        controller = controller_without_spawning(VehicleConfig(min_following_gap=0.0))
        vehicle = Vehicle(1, controller.config.vehicle, x=100.0)
        other = Vehicle(2, controller.config.vehicle, x=other_x, lane=Lane.SHOULDER)
        controller.vehicles.extend([vehicle, other])

        assert controller.is_lane_available(vehicle, Lane.SHOULDER) is available

    @pytest.mark.parametrize("follower_speed, available", [(10.0, False), (0.0, True)])
    def test_lane_unavailable_for_fast_follower(self, follower_speed, available):
        """El vehículo que quedaría atrás debe poder frenar a tiempo."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=100.0, lane=Lane.SHOULDER)
        follower = Vehicle(2, controller.config.vehicle, x=85.0, speed=follower_speed)
        controller.vehicles.extend([vehicle, follower])

        # Fuera de la ventana; distancia 10.5 contra 5 + 10 * 2.5 / 2 = 17.5
        assert controller.is_lane_available(vehicle, Lane.MAIN) is available

    @pytest.mark.parametrize("speed, available", [(8.0, False), (0.0, True)])
    def test_lane_unavailable_behind_close_leader(self, speed, available):
        """El vehículo que cambia debe tener distancia suficiente al de adelante."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=100.0, speed=speed)
        leader = Vehicle(2, controller.config.vehicle, x=115.0, lane=Lane.SHOULDER)
        controller.vehicles.extend([leader, vehicle])

        # Distancia 10.5 contra 5 + 8 * 2.5 / 2 = 15
        assert controller.is_lane_available(vehicle, Lane.SHOULDER) is available

    def test_own_lane_excludes_self(self):
        """El propio vehículo no ocupa su ventana."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=100.0)
        controller.vehicles.append(vehicle)

        assert controller.is_lane_available(vehicle, Lane.MAIN)

    def test_shoulder_unreachable_near_bridge(self):
        """Cerca del puente la banquina no está disponible."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=296.0)
        controller.vehicles.append(vehicle)

        assert not controller.is_lane_available(vehicle, Lane.SHOULDER)

    def test_surroundings_of(self):
        """Test de datos del entorno completos."""
        controller = controller_without_spawning()
        vehicle = Vehicle(1, controller.config.vehicle, x=100.0)
        controller.vehicles.append(vehicle)

        facts = controller.surroundings_of(vehicle)

        assert facts.gap_ahead == float('inf')
        assert facts.gap_to_traffic_light == pytest.approx(395.5)
        assert facts.gap_to_shoulder_end == pytest.approx(195.5)
        assert facts.is_shoulder_lane_available
        assert facts.is_main_lane_available

    def test_unknown_vehicle(self):
        """Un vehículo ajeno al controlador se rechaza."""
        controller = controller_without_spawning()

        with pytest.raises(ValueError):
            controller.gap_ahead(Vehicle(99))


class TestRun:
    """Tests de corridas completas."""

    @pytest.fixture
    def finished(self):
        """Corrida de 200s con historial."""
        controller = TrafficController(record_history=True)
        controller.run(duration=200.0, dt=0.1)
        return controller

    def test_history_recorded(self, finished):
        """Se guarda un estado por paso."""
        assert len(finished.history) == 2001
        assert finished.history[0].time == 0.0
        assert finished.history[-1].time == pytest.approx(200.0)

    def test_speed_bounds_and_forward_motion(self, finished):
        """Velocidades dentro de [0, máximo del carril] y posiciones no decrecientes."""
        limits = {
            Lane.MAIN: finished.config.vehicle.max_speed,
            Lane.SHOULDER: finished.config.vehicle.shoulder_max_speed,
        }
        last_x = {}

        for snapshot in finished.history:
            for v in snapshot.vehicles:
                assert 0.0 <= v.speed <= limits[v.lane] + 1e-9
                assert v.x >= last_x.get(v.vehicle_id, 0.0)
                last_x[v.vehicle_id] = v.x

    def test_lane_change_cooldown(self, finished):
        """Dos cambios de carril del mismo vehículo se separan más que la espera."""
        cooldown = finished.config.vehicle.lane_change_cooldown
        last_lane = {}
        last_change = {}

        for snapshot in finished.history:
            for v in snapshot.vehicles:
                previous = last_lane.get(v.vehicle_id)
                if previous is not None and previous != v.lane:
                    if v.vehicle_id in last_change:
                        assert snapshot.time - last_change[v.vehicle_id] > cooldown
                    last_change[v.vehicle_id] = snapshot.time
                last_lane[v.vehicle_id] = v.lane

    def test_no_overlap_in_same_lane(self, finished):
        """Dos vehículos del mismo carril nunca se superponen."""
        for snapshot in finished.history:
            assert_no_overlap(snapshot)

    def test_no_overlap_in_dense_traffic(self):
        """Con intensidad alta tampoco hay superposición."""
        config = SimulationConfig(spawner=SpawnerConfig(intensity=1.0))
        controller = TrafficController(config, record_history=True)

        controller.run(duration=300.0, dt=0.1)

        assert controller.spawner.vehicles_produced > 20
        for snapshot in controller.history:
            assert_no_overlap(snapshot)

    def test_merge_blocked_by_fast_follower(self):
        """Desde la banquina no se entra delante de un vehículo que no llega a frenar."""
        config = SimulationConfig(
            spawner=SpawnerConfig(max_vehicles=0),
            traffic_light=TrafficLightConfig(initially_passable=False)
        )
        controller = TrafficController(config, record_history=True)
        leader = Vehicle(1, config.vehicle, x=290.0)
        waiting = Vehicle(2, config.vehicle, x=283.0, lane=Lane.SHOULDER)
        follower = Vehicle(3, config.vehicle, x=274.0, speed=9.5)
        controller.vehicles.extend([leader, waiting, follower])

        assert not controller.is_lane_available(waiting, Lane.MAIN)

        controller.run(duration=2.0, dt=0.1)

        for snapshot in controller.history:
            assert_no_overlap(snapshot)

    def test_spawn_order(self, finished):
        """Los vehículos aparecen en orden de ingreso con ids crecientes."""
        ids = [v.id for v in finished.vehicles]
        assert ids == sorted(ids)
        assert ids[0] == 1

    def test_final_metrics(self, finished):
        """Test de métricas finales."""
        metrics = finished.calculate_final_metrics()

        for key in ['simulation_time', 'vehicles_generated', 'vehicles_past_light',
                    'throughput_per_hour', 'avg_speed_kmh', 'avg_waiting_time',
                    'avg_stops', 'lane_changes', 'light_cycles']:
            assert key in metrics

        assert metrics['simulation_time'] == pytest.approx(200.0)
        assert metrics['vehicles_generated'] == len(finished.vehicles)
        assert metrics['vehicles_past_light'] >= 1
        assert metrics['throughput_per_hour'] > 0
        assert metrics['light_cycles'] >= 1

    def test_current_state(self, finished):
        """Test de estado resumido."""
        state = finished.get_current_state()

        assert state['vehicles'] == len(finished.vehicles)
        assert state['vehicles_main_lane'] + state['vehicles_shoulder_lane'] == state['vehicles']
        assert state['traffic_light'] in ('green', 'red')

    def test_run_continues_from_last_time(self):
        """Una segunda corrida sigue desde el último tiempo."""
        controller = TrafficController()

        first = controller.run(duration=1.0, dt=0.1)
        second = controller.run(duration=1.0, dt=0.1)

        assert len(first) == 11
        assert len(second) == 10
        assert second[0].time > first[-1].time
        assert controller.current_time == pytest.approx(2.0)

    @pytest.mark.parametrize("duration, dt", [(10.0, 0.0), (10.0, -0.1), (-1.0, 0.1)])
    def test_invalid_run_parameters(self, duration, dt):
        """Paso o duración inválidos se rechazan."""
        with pytest.raises(InvalidConfiguration):
            TrafficController().run(duration=duration, dt=dt)

    def test_reset(self, finished):
        """Test de reinicio del controlador."""
        finished.reset()

        assert finished.vehicles == []
        assert finished.history == []
        assert finished.current_time is None
        assert finished.tick(0.0).vehicle_count == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
