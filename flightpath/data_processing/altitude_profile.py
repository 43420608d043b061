"""
Altitude profile planning
Which altitude levels weather data must cover for a given flight
"""

from typing import List, NamedTuple

from flightpath.models.forecast import AltitudeRequirements
from flightpath.utils.helpers import round_half_up
from flightpath.utils.logger import get_logger


class AtmosphericLayer(NamedTuple):
    name: str
    bottom: float
    top: float
    importance: str


ATMOSPHERIC_LAYERS = [
    AtmosphericLayer('Surface Layer', 0, 100, 'critical'),
    AtmosphericLayer('Planetary Boundary Layer', 100, 2000, 'critical'),
    AtmosphericLayer('Free Atmosphere', 2000, 10000, 'important'),
    AtmosphericLayer('Tropopause Region', 8000, 15000, 'critical'),
    AtmosphericLayer('Lower Stratosphere', 12000, 25000, 'important'),
    AtmosphericLayer('Middle Stratosphere', 25000, 40000, 'optional'),
]

FALLBACK_REQUIREMENTS = {
    'min': 0,
    'max': 30000,
    'intervals': [0, 5000, 10000, 15000, 20000, 25000, 30000],
    'resolution': 5000,
    'safety_margin': 5000
}


def get_critical_layers(min_altitude: float, max_altitude: float) -> List[AtmosphericLayer]:
    return [
        layer for layer in ATMOSPHERIC_LAYERS
        if layer.top >= min_altitude and layer.bottom <= max_altitude
    ]


def generate_altitude_intervals(min_altitude: float, max_altitude: float, resolution: float) -> List[float]:
    """Regular levels at `resolution` spacing plus both bounds"""
    intervals = set()
    current = (min_altitude // resolution) * resolution
    while current <= max_altitude:
        if current >= min_altitude:
            intervals.add(float(current))
        current += resolution

    intervals.add(float(min_altitude))
    intervals.add(float(max_altitude))
    return sorted(intervals)


def calculate_altitude_requirements(
    launch_altitude: float,
    burst_altitude: float,
    safety_margin: float = 5000,
    logger=None
) -> AltitudeRequirements:
    """
    Altitude levels needed for a flight

    Args:
        launch_altitude: Launch site altitude (m)
        burst_altitude: Expected burst altitude (m)
        safety_margin: Extra coverage above burst (m)
        logger: Logger instance

    Returns:
        AltitudeRequirements. Invalid inputs give a fixed 0-30 km profile.
    """
    if launch_altitude < 0 or burst_altitude <= launch_altitude or safety_margin < 0:
        (logger or get_logger()).warning(
            f"Invalid altitude parameters ({launch_altitude}, {burst_altitude}), using fallback profile"
        )
        return AltitudeRequirements(**FALLBACK_REQUIREMENTS)

    min_altitude = max(0.0, launch_altitude - 500)
    max_altitude = burst_altitude + safety_margin

    altitude_range = max_altitude - min_altitude
    if altitude_range <= 10000:
        resolution = 500
    elif altitude_range <= 25000:
        resolution = 1000
    else:
        resolution = 2000

    intervals = set(generate_altitude_intervals(min_altitude, max_altitude, resolution))
    for layer in get_critical_layers(min_altitude, max_altitude):
        if layer.importance == 'critical':
            candidates = [layer.bottom, layer.top]
        elif layer.importance == 'important':
            candidates = [round_half_up((layer.bottom + layer.top) / 2)]
        else:
            candidates = []
        intervals.update(float(c) for c in candidates if min_altitude <= c <= max_altitude)

    return AltitudeRequirements(
        min=min_altitude,
        max=max_altitude,
        intervals=sorted(intervals),
        resolution=resolution,
        safety_margin=safety_margin
    )

