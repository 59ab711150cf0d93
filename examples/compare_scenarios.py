"""
Script de comparación: Uso de banquina y tiempos de semáforo

Este script ejecuta varias configuraciones del tramo con la misma demanda
y compara sus resultados:
1. Sin banquina (Baseline)
2. Con banquina
3. Con banquina y verde más largo
4. Con banquina y distancia de frenado cinemática
"""

import sys
from pathlib import Path

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.simulator import TrafficController
from src.utils.config import (
    SimulationConfig, SpawnerConfig, TrafficLightConfig, VehicleConfig, setup_logging
)
from src.utils.metrics import MetricsCalculator
import time as timer

DURATION = 600.0
DEMAND = SpawnerConfig(intensity=0.4)

SCENARIOS = {
    'Baseline': SimulationConfig(
        vehicle=VehicleConfig(can_use_shoulder=False),
        spawner=DEMAND
    ),
    'Banquina': SimulationConfig(spawner=DEMAND),
    'Banquina + verde 20s': SimulationConfig(
        spawner=DEMAND,
        traffic_light=TrafficLightConfig(green_duration=20.0, red_duration=15.0)
    ),
    'Banquina + cinemático': SimulationConfig(
        vehicle=VehicleConfig(braking_policy="kinematic"),
        spawner=DEMAND
    ),
}


def run_scenario(name: str, config: SimulationConfig) -> dict:
    """Ejecuta una configuración y retorna sus métricas."""
    print(f"\n{'='*70}")
    print(name)
    print(f"{'='*70}")

    controller = TrafficController(config)

    start = timer.time()
    controller.run(duration=DURATION)
    elapsed = timer.time() - start

    metrics = controller.calculate_final_metrics()
    metrics['total_time'] = elapsed

    print(f"  Pasaron el semáforo: {metrics['vehicles_past_light']}")
    print(f"  Cambios de carril:   {metrics['lane_changes']}")
    print(f"  Tiempo de cómputo:   {elapsed:.2f}s")

    return metrics


def print_comparison(results: dict):
    """Imprime tabla comparativa de resultados."""
    print(f"\n{'='*80}")
    print("TABLA COMPARATIVA DE RESULTADOS")
    print(f"{'='*80}")

    calc = MetricsCalculator()
    df = calc.create_summary_dataframe(results)

    print("\n" + df.to_string(index=False))

    # Calcular mejoras respecto a baseline
    print(f"\n{'='*80}")
    print("MEJORAS RESPECTO A BASELINE")
    print(f"{'='*80}")

    baseline_metrics = results['Baseline']

    for scenario_name, metrics in results.items():
        if scenario_name == 'Baseline':
            continue

        print(f"\n{scenario_name}:")
        improvements = calc.calculate_improvement(baseline_metrics, metrics)

        for metric, improvement in improvements.items():
            symbol = "✓" if improvement > 0 else "✗"
            print(f"  {symbol} {metric:25s}: {improvement:+.1f}%")


def main():
    """Función principal."""
    setup_logging("WARNING")

    print("="*80)
    print("COMPARACIÓN DE CONFIGURACIONES DEL TRAMO")
    print(f"Demanda: {DEMAND.intensity * 3600:.0f} veh/h")
    print(f"Duración: {DURATION / 60:.0f} minutos de simulación")
    print("="*80)

    results = {name: run_scenario(name, config) for name, config in SCENARIOS.items()}

    print_comparison(results)

    print(f"\n{'='*80}")
    print("COMPARACIÓN COMPLETADA")
    print(f"{'='*80}")


if __name__ == "__main__":
    main()
