"""
Excepciones del simulador de tramo con puente.

Los errores de uso se detectan explícitamente en lugar de tolerarse en
silencio: una configuración inválida se rechaza al construir los
componentes, y un tiempo que retrocede se rechaza al avanzar la simulación.
"""


class SimulationError(Exception):
    """Error base de todos los componentes del simulador."""


class InvalidConfiguration(SimulationError, ValueError):
    """Parámetros de configuración fuera de rango (detectado al construir)."""


class InvalidTimeOrdering(SimulationError, ValueError):
    """
    El tiempo suministrado es menor al último tiempo observado.

    Attributes:
        now: Tiempo recibido (segundos)
        last_time: Último tiempo observado por el componente (segundos)
    """

    def __init__(self, now: float, last_time: float, component: str = ""):
        self.now = now
        self.last_time = last_time
        self.component = component
        where = f" en {component}" if component else ""
        super().__init__(
            f"Tiempo no monotónico{where}: {now:.3f}s < {last_time:.3f}s"
        )
