"""
Flight duration estimation
Ascent and descent times from balloon specifications, used to size forecast windows
"""

import math
from datetime import datetime, timedelta
from typing import Dict, Optional

from flightpath.exceptions import ValidationError
from flightpath.models.forecast import AtmosphericConditions, BalloonSpecs, FlightDurationEstimate
from flightpath.utils.helpers import round_half_up
from flightpath.utils.logger import get_logger


GRAVITY = 9.81
SEA_LEVEL_DENSITY = 1.225
# Typical small parachute area used for duration estimates (m²)
REFERENCE_PARACHUTE_AREA = 10.0

AVERAGE_ASCENT_FACTOR = 0.85
AVERAGE_DESCENT_FACTOR = 0.7

FALLBACK_ESTIMATE = {
    'ascent_time': 120,
    'descent_time': 60,
    'total_flight_time': 180,
    'uncertainty_margin': 60,
    'confidence': 'low'
}


def validate_flight_parameters(specs: BalloonSpecs, launch_altitude: float):
    """
    Check balloon specifications before estimating

    Raises:
        ValidationError: On the first invalid field
    """
    positive_fields = (
        'balloon_volume', 'payload_weight', 'balloon_weight', 'ascent_rate', 'drag_coefficient'
    )
    for field in positive_fields:
        if not getattr(specs, field) > 0:
            raise ValidationError(f"{field} must be positive", field=field)

    if launch_altitude < 0:
        raise ValidationError("launch altitude must not be negative", field='launch_altitude')

    if specs.burst_altitude <= launch_altitude:
        raise ValidationError("burst altitude must be above launch altitude", field='burst_altitude')


def calculate_terminal_velocity(payload_weight: float, drag_coefficient: float) -> float:
    """Sea-level descent speed under the reference parachute, clamped to [2, 15] m/s"""
    velocity = math.sqrt(
        (2 * payload_weight * GRAVITY) /
        (SEA_LEVEL_DENSITY * drag_coefficient * REFERENCE_PARACHUTE_AREA)
    )
    return max(2.0, min(15.0, velocity))


def estimate_flight_duration(
    specs: BalloonSpecs,
    launch_altitude: float = 0.0,
    atmospheric_conditions: Optional[AtmosphericConditions] = None,
    logger=None
) -> FlightDurationEstimate:
    """
    Estimate ascent, descent and total flight time

    Invalid specifications produce a conservative low-confidence estimate
    instead of an error.

    Args:
        specs: Balloon specifications
        launch_altitude: Launch site altitude (m)
        atmospheric_conditions: Launch-site atmosphere, if known
        logger: Logger instance

    Returns:
        FlightDurationEstimate in minutes
    """
    logger = logger or get_logger()

    try:
        validate_flight_parameters(specs, launch_altitude)
    except ValidationError as e:
        logger.warning(f"Flight duration estimation failed, using fallback: {e}")
        return FlightDurationEstimate(**FALLBACK_ESTIMATE)

    altitude_difference = specs.burst_altitude - launch_altitude

    ascent_seconds = altitude_difference / (specs.ascent_rate * AVERAGE_ASCENT_FACTOR)
    ascent_time = round_half_up(ascent_seconds / 60)

    terminal_velocity = calculate_terminal_velocity(specs.payload_weight, specs.drag_coefficient)
    descent_seconds = altitude_difference / (terminal_velocity * AVERAGE_DESCENT_FACTOR)
    descent_time = round_half_up(descent_seconds / 60)

    total_flight_time = ascent_time + descent_time

    uncertainty_factor = 0.1
    if specs.burst_altitude > 30000:
        uncertainty_factor += 0.05
    if specs.payload_weight > 2000:
        uncertainty_factor += 0.05
    if atmospheric_conditions is None:
        uncertainty_factor += 0.1
    uncertainty_factor = min(0.5, uncertainty_factor)
    uncertainty_margin = round_half_up(total_flight_time * uncertainty_factor)

    uncertainty_ratio = uncertainty_margin / altitude_difference * 60
    if uncertainty_ratio < 0.1 and atmospheric_conditions is not None:
        confidence = 'high'
    elif uncertainty_ratio < 0.3:
        confidence = 'medium'
    else:
        confidence = 'low'

    return FlightDurationEstimate(
        ascent_time=ascent_time,
        descent_time=descent_time,
        total_flight_time=total_flight_time,
        uncertainty_margin=uncertainty_margin,
        confidence=confidence
    )


def estimate_weather_adjusted_duration(
    specs: BalloonSpecs,
    average_wind_speed: float,
    launch_altitude: float = 0.0,
    atmospheric_conditions: Optional[AtmosphericConditions] = None,
    logger=None
) -> FlightDurationEstimate:
    """
    Stretch the descent and widen the margin for windy conditions

    Args:
        specs: Balloon specifications
        average_wind_speed: Mean wind speed along the flight (m/s)
        launch_altitude: Launch site altitude (m)
        atmospheric_conditions: Launch-site atmosphere, if known
        logger: Logger instance

    Returns:
        Adjusted FlightDurationEstimate
    """
    base = estimate_flight_duration(specs, launch_altitude, atmospheric_conditions, logger)

    wind_factor = min(1.5, 1 + average_wind_speed * 0.01)
    descent_time = round_half_up(base.descent_time * wind_factor)

    return FlightDurationEstimate(
        ascent_time=base.ascent_time,
        descent_time=descent_time,
        total_flight_time=base.ascent_time + descent_time,
        uncertainty_margin=base.uncertainty_margin + round_half_up(average_wind_speed * 2),
        confidence='low' if average_wind_speed > 10 else base.confidence
    )


def get_recommended_forecast_window(
    duration: FlightDurationEstimate,
    launch_time: datetime,
    lookback_minutes: int = 120,
    buffer_minutes: int = 60
) -> Dict:
    """
    Window around launch covering the whole flight

    Args:
        duration: Flight duration estimate
        launch_time: Planned launch time
        lookback_minutes: Data needed before launch
        buffer_minutes: Extra data after the expected landing

    Returns:
        Dictionary with start, end, total_hours and safety_margin (minutes)
    """
    start = launch_time - timedelta(minutes=lookback_minutes)
    end = launch_time + timedelta(
        minutes=duration.total_flight_time + duration.uncertainty_margin + buffer_minutes
    )

    return {
        'start': start,
        'end': end,
        'total_hours': math.ceil((end - start).total_seconds() / 3600),
        'safety_margin': lookback_minutes + duration.uncertainty_margin + buffer_minutes
    }
