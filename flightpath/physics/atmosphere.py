"""
Simplified standard atmosphere and drag helpers
"""

import math

from flightpath.exceptions import ValidationError


GRAVITY = 9.81
SEA_LEVEL_DENSITY = 1.225       # kg/m³
SEA_LEVEL_PRESSURE = 101325.0   # Pa
SEA_LEVEL_TEMPERATURE = 288.15  # K
SCALE_HEIGHT = 7400.0           # m
LAPSE_RATE = 0.0065             # K/m


def _check_altitude(altitude: float):
    if altitude < 0:
        raise ValidationError("Altitude cannot be negative", field='altitude')


def calculate_density(altitude: float) -> float:
    """Air density (kg/m³) with an exponential scale height"""
    _check_altitude(altitude)
    return SEA_LEVEL_DENSITY * math.exp(-altitude / SCALE_HEIGHT)


def calculate_pressure(altitude: float) -> float:
    """Air pressure (Pa)"""
    _check_altitude(altitude)
    return SEA_LEVEL_PRESSURE * math.exp(-altitude / SCALE_HEIGHT)


def calculate_temperature(altitude: float) -> float:
    """Air temperature (K) with a constant lapse rate"""
    _check_altitude(altitude)
    return SEA_LEVEL_TEMPERATURE - LAPSE_RATE * altitude


def get_atmospheric_conditions(altitude: float) -> dict:
    return {
        'density': calculate_density(altitude),
        'pressure': calculate_pressure(altitude),
        'temperature': calculate_temperature(altitude)
    }


def calculate_terminal_velocity(mass: float, density: float, area: float, drag_coefficient: float) -> float:
    """
    Speed at which drag balances weight

    Args:
        mass: Falling mass (kg)
        density: Air density (kg/m³)
        area: Parachute area (m²)
        drag_coefficient: Parachute drag coefficient

    Returns:
        Terminal velocity (m/s)
    """
    denominator = density * area * drag_coefficient
    if denominator <= 0:
        raise ValidationError("Invalid parameters for terminal velocity calculation")
    return math.sqrt(2 * mass * GRAVITY / denominator)


def step_descent_velocity(
    velocity: float,
    mass: float,
    density: float,
    area: float,
    drag_coefficient: float,
    time_step: float
) -> float:
    """
    Advance the fall speed by one time step

    Drag is evaluated at the new speed, v' = v + dt·(g - k·v'²), so the
    update stays stable for any step size and approaches the terminal
    velocity from below without overshooting.

    Args:
        velocity: Current downward speed (m/s)
        mass: Falling mass (kg)
        density: Air density (kg/m³)
        area: Parachute area (m²)
        drag_coefficient: Parachute drag coefficient
        time_step: Step length (s)

    Returns:
        New downward speed (m/s)
    """
    k = 0.5 * density * area * drag_coefficient / mass
    if k <= 0:
        return velocity + GRAVITY * time_step

    kdt = k * time_step
    return (-1 + math.sqrt(1 + 4 * kdt * (velocity + GRAVITY * time_step))) / (2 * kdt)
