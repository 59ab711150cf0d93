"""
Script de ejemplo: Simulación del tramo con puente y semáforo

Este script ejecuta una corrida sin interfaz, imprime el estado del tramo
cada cierto tiempo y al final las métricas de la corrida. Opcionalmente
guarda el diagrama espacio-tiempo.
"""

import argparse
import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.simulator import TrafficController, Lane, RoadSection
from src.utils.config import (
    SimulationConfig, SpawnerConfig, TrafficLightConfig, VehicleConfig,
    DEFAULT_TIME_STEP, setup_logging
)
from src.utils.metrics import MetricsCalculator


def parse_args():
    parser = argparse.ArgumentParser(description="Simulación del tramo con puente")
    parser.add_argument("--duration", type=float, default=300.0,
                        help="Duración a simular (segundos)")
    parser.add_argument("--dt", type=float, default=DEFAULT_TIME_STEP,
                        help="Paso de simulación (segundos)")
    parser.add_argument("--intensity", type=float, default=0.5,
                        help="Vehículos por segundo en la entrada")
    parser.add_argument("--green", type=float, default=10.0, help="Duración del verde (s)")
    parser.add_argument("--red", type=float, default=15.0, help="Duración del rojo (s)")
    parser.add_argument("--no-shoulder", action="store_true",
                        help="Los vehículos no usan la banquina")
    parser.add_argument("--braking-policy", default="proportional",
                        choices=["proportional", "kinematic", "fixed"])
    parser.add_argument("--plot", type=Path, default=None,
                        help="Archivo PNG para el diagrama espacio-tiempo")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def print_snapshot(snapshot):
    """Imprime una línea de resumen del estado."""
    main = len(snapshot.vehicles_in_lane(Lane.MAIN))
    shoulder = len(snapshot.vehicles_in_lane(Lane.SHOULDER))
    print(f"  t={snapshot.time:6.1f}s | Semáforo: {snapshot.light_state.value:5s} | "
          f"Principal: {main:3d} | Banquina: {shoulder:3d}")


def main():
    """Función principal del ejemplo."""
    args = parse_args()
    setup_logging(args.log_level)

    config = SimulationConfig(
        vehicle=VehicleConfig(can_use_shoulder=not args.no_shoulder,
                              braking_policy=args.braking_policy),
        spawner=SpawnerConfig(intensity=args.intensity),
        traffic_light=TrafficLightConfig(green_duration=args.green, red_duration=args.red)
    )

    print("="*70)
    print("SIMULACIÓN DEL TRAMO CON PUENTE Y SEMÁFORO")
    print("="*70)

    controller = TrafficController(config)
    print(f"\n{controller.road!r}")
    for name, value in controller.road.get_road_stats().items():
        print(f"  {name:20s} {value:8.1f}")
    print(f"{controller.traffic_light!r}")
    print(f"  Fracción en verde: {controller.traffic_light.get_green_ratio():.1%}\n")

    snapshots = controller.run(duration=args.duration, dt=args.dt)

    # Resumen cada 30 segundos simulados
    report_every = max(1, int(round(30.0 / args.dt)))
    for snapshot in snapshots[::report_every]:
        print_snapshot(snapshot)

    metrics = controller.calculate_final_metrics()

    print("\n" + "="*70)
    print("MÉTRICAS FINALES")
    print("="*70)
    print(f"  Vehículos generados:  {metrics['vehicles_generated']}")
    print(f"  Pasaron el semáforo:  {metrics['vehicles_past_light']}")
    print(f"  Throughput:           {metrics['throughput_per_hour']:.0f} veh/h")
    print(f"  Velocidad promedio:   {metrics['avg_speed_kmh']:.1f} km/h")
    print(f"  Espera promedio:      {metrics['avg_waiting_time']:.1f} s")
    print(f"  Paradas promedio:     {metrics['avg_stops']:.2f}")
    print(f"  Cambios de carril:    {metrics['lane_changes']}")
    print(f"  Ciclos de semáforo:   {metrics['light_cycles']}")
    print(f"  Próximo cambio en:    "
          f"{controller.traffic_light.get_time_until_change(controller.current_time):.1f} s")
    p95 = MetricsCalculator.percentile_waiting_time(controller.vehicles, 95)
    print(f"  Espera (percentil 95): {p95:.1f} s")

    df = MetricsCalculator.snapshots_to_dataframe(snapshots)
    print(f"  Uso de banquina:      {MetricsCalculator.shoulder_usage_ratio(df):.1%}")

    mean_speed = MetricsCalculator.mean_speed_over_time(df)
    if not mean_speed.empty:
        print(f"  Velocidad media de la corriente: mín {mean_speed.min():.1f} m/s, "
              f"máx {mean_speed.max():.1f} m/s")

    print("\n  Vehículos por sección:")
    for section in RoadSection:
        count = sum(1 for v in controller.vehicles
                    if controller.road.section_at(v.x) == section)
        print(f"    {section.value:12s} {count:4d}")

    if args.plot is not None:
        import matplotlib
        matplotlib.use("Agg")

        fig = MetricsCalculator.plot_time_space_diagram(df, road=controller.road)
        fig.savefig(args.plot, dpi=150)
        print(f"\nDiagrama guardado en {args.plot}")


if __name__ == "__main__":
    main()
