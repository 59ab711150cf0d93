"""
Sistema de métricas y análisis de resultados.

Este módulo proporciona funciones para calcular y analizar métricas del
flujo vehicular en el tramo: velocidades, esperas, paradas, uso de la
banquina y throughput en el semáforo. Trabaja sobre los vehículos del
controlador o sobre el historial de estados inmutables.
"""

from typing import Dict, List, Sequence, Tuple
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

SNAPSHOT_COLUMNS = [
    'time', 'vehicle_id', 'x', 'lane', 'speed', 'length', 'state', 'light_passable'
]


class MetricsCalculator:
    """
    Calculadora de métricas de evaluación para simulaciones del tramo.

    Proporciona métodos estáticos para calcular diversas métricas
    de rendimiento del sistema.
    """

    @staticmethod
    def average_speed(vehicles: List) -> float:
        """
        Calcula la velocidad promedio de los vehículos.

        Args:
            vehicles: Lista de vehículos

        Returns:
            float: Velocidad promedio en km/h
        """
        if not vehicles:
            return 0.0

        speeds = [v.get_average_speed_kmh() for v in vehicles]
        return float(np.mean(speeds))

    @staticmethod
    def average_waiting_time(vehicles: List) -> float:
        """
        Calcula el tiempo promedio detenido por vehículo.

        Args:
            vehicles: Lista de vehículos

        Returns:
            float: Espera promedio en segundos
        """
        if not vehicles:
            return 0.0

        waits = [v.total_waiting_time for v in vehicles]
        return float(np.mean(waits))

    @staticmethod
    def percentile_waiting_time(vehicles: List, percentile: float = 95) -> float:
        """
        Calcula el percentil del tiempo detenido.

        Args:
            vehicles: Lista de vehículos
            percentile: Percentil a calcular (0-100)

        Returns:
            float: Espera en el percentil dado
        """
        if not vehicles:
            return 0.0

        waits = [v.total_waiting_time for v in vehicles]
        return float(np.percentile(waits, percentile))

    @staticmethod
    def average_stops(vehicles: List) -> float:
        """
        Calcula el número promedio de paradas por vehículo.

        Args:
            vehicles: Lista de vehículos

        Returns:
            float: Número promedio de paradas
        """
        if not vehicles:
            return 0.0

        stops = [v.num_stops for v in vehicles]
        return float(np.mean(stops))

    @staticmethod
    def total_lane_changes(vehicles: List) -> int:
        """Total de cambios de carril de todos los vehículos."""
        return sum(v.lane_changes for v in vehicles)

    @staticmethod
    def throughput(vehicles: List, simulation_time: float) -> float:
        """
        Calcula el throughput (vehículos por hora).

        Args:
            vehicles: Vehículos que pasaron el semáforo
            simulation_time: Tiempo total de simulación en segundos

        Returns:
            float: Vehículos por hora
        """
        if simulation_time <= 0:
            return 0.0

        return (len(vehicles) / simulation_time) * 3600

    @staticmethod
    def snapshots_to_dataframe(snapshots: Sequence) -> pd.DataFrame:
        """
        Convierte un historial de estados en un DataFrame (una fila por
        vehículo y paso).

        Args:
            snapshots: Estados emitidos por el controlador

        Returns:
            pd.DataFrame: Columnas SNAPSHOT_COLUMNS
        """
        rows = []
        for snapshot in snapshots:
            for v in snapshot.vehicles:
                rows.append({
                    'time': snapshot.time,
                    'vehicle_id': v.vehicle_id,
                    'x': v.x,
                    'lane': v.lane.value,
                    'speed': v.speed,
                    'length': v.length,
                    'state': v.state.value,
                    'light_passable': snapshot.is_light_passable,
                })

        return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)

    @staticmethod
    def mean_speed_over_time(df: pd.DataFrame) -> pd.Series:
        """
        Velocidad media de la corriente en cada paso.

        Args:
            df: DataFrame de snapshots_to_dataframe

        Returns:
            pd.Series: Velocidad media (m/s) indexada por tiempo
        """
        return df.groupby('time')['speed'].mean()

    @staticmethod
    def shoulder_usage_ratio(df: pd.DataFrame) -> float:
        """
        Fracción de las observaciones (vehículo, paso) en la banquina.

        Args:
            df: DataFrame de snapshots_to_dataframe

        Returns:
            float: Ratio entre 0.0 y 1.0
        """
        if df.empty:
            return 0.0

        return float((df['lane'] == 'shoulder').mean())

    @staticmethod
    def create_summary_dataframe(results: Dict[str, Dict]) -> pd.DataFrame:
        """
        Crea un DataFrame con resumen comparativo de corridas.

        Args:
            results: Dict {nombre_corrida: métricas}

        Returns:
            pd.DataFrame: DataFrame con métricas comparadas
        """
        data = []

        for run_name, metrics in results.items():
            data.append({
                'Run': run_name,
                'Throughput (veh/h)': metrics.get('throughput_per_hour', 0),
                'Avg Speed (km/h)': metrics.get('avg_speed_kmh', 0),
                'Avg Wait (s)': metrics.get('avg_waiting_time', 0),
                'Avg Stops': metrics.get('avg_stops', 0),
                'Lane Changes': metrics.get('lane_changes', 0),
                'Generated': metrics.get('vehicles_generated', 0),
                'Past Light': metrics.get('vehicles_past_light', 0)
            })

        df = pd.DataFrame(data)

        # Ordenar por throughput (mayor es mejor)
        if not df.empty:
            df = df.sort_values('Throughput (veh/h)', ascending=False)

        return df

    @staticmethod
    def calculate_improvement(baseline_metrics: Dict, other_metrics: Dict) -> Dict:
        """
        Calcula mejoras porcentuales respecto a una corrida de referencia.

        Args:
            baseline_metrics: Métricas de referencia
            other_metrics: Métricas a comparar

        Returns:
            dict: Diccionario con mejoras porcentuales
        """
        improvements = {}

        # Métricas donde menor es mejor
        for metric in ['avg_waiting_time', 'avg_stops']:
            baseline_val = baseline_metrics.get(metric, 0)
            other_val = other_metrics.get(metric, 0)

            if baseline_val > 0:
                improvements[metric] = ((baseline_val - other_val) / baseline_val) * 100
            else:
                improvements[metric] = 0.0

        # Métricas donde mayor es mejor
        for metric in ['throughput_per_hour', 'avg_speed_kmh']:
            baseline_val = baseline_metrics.get(metric, 0)
            other_val = other_metrics.get(metric, 0)

            if baseline_val > 0:
                improvements[metric] = ((other_val - baseline_val) / baseline_val) * 100
            else:
                improvements[metric] = 0.0

        return improvements

    @staticmethod
    def plot_time_space_diagram(df: pd.DataFrame, road=None,
                                figsize: Tuple[int, int] = (12, 6)) -> plt.Figure:
        """
        Diagrama espacio-tiempo de las trayectorias, por carril.

        Args:
            df: DataFrame de snapshots_to_dataframe
            road: Geometría del tramo (Road) para marcar puente y semáforo
            figsize: Tamaño de la figura

        Returns:
            plt.Figure: Figura de matplotlib
        """
        fig, ax = plt.subplots(figsize=figsize)

        colors = {'main': '#1f77b4', 'shoulder': '#ff7f0e'}
        for lane, group in df.groupby('lane'):
            ax.scatter(group['time'], group['x'], s=2,
                       color=colors.get(lane, '#888888'), label=lane)

        if road is not None:
            ax.axhspan(road.bridge_start, road.bridge_end, color='blue', alpha=0.1,
                       label='puente')
            ax.axhline(road.light_position, color='red', linestyle='--',
                       label='semáforo')

        ax.set_xlabel("Tiempo (s)")
        ax.set_ylabel("Posición (m)")
        ax.set_title("Diagrama espacio-tiempo", fontsize=12, fontweight='bold')
        ax.grid(alpha=0.3)
        ax.legend(loc='upper left')

        plt.tight_layout()
        return fig
