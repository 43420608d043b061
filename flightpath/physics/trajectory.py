"""
Trajectory physics engine
Constant-rate ascent to burst, drag-limited descent, wind drift at every step
"""

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import numpy as np

from flightpath.config import get_section
from flightpath.exceptions import ValidationError
from flightpath.models.prediction import (
    AscentResult,
    DescentResult,
    MonteCarloLandingResult,
    PredictionInput,
    PredictionResult,
    TrajectoryPoint,
)
from flightpath.models.weather import WeatherSample
from flightpath.physics.atmosphere import calculate_density, calculate_terminal_velocity, step_descent_velocity
from flightpath.physics.wind import WindProfile, calculate_wind_effects, drift_position, validate_weather_data
from flightpath.utils.helpers import ensure_utc, haversine_distance
from flightpath.utils.logger import get_logger


QUALITY_CONFIDENCE_FACTOR = {'high': 1.0, 'medium': 0.9, 'low': 0.75}


def calculate_landing_confidence(
    descent_duration: float,
    max_velocity: float,
    wind_drift: float,
    terminal_velocity: float
) -> float:
    confidence = 0.8
    if descent_duration > 3600:
        confidence -= 0.1
    if max_velocity > 20:
        confidence -= 0.1
    if wind_drift > 50:
        confidence -= 0.1
    if 0 < terminal_velocity < 15:
        confidence += 0.05
    return max(0.0, min(1.0, confidence))


class TrajectoryEngine:
    """
    Physics-based balloon trajectory prediction
    """

    def __init__(self, config: Optional[Dict] = None, logger=None):
        """
        Initialize engine

        Args:
            config: Full prediction config (the 'physics' section is used)
            logger: Logger instance
        """
        section = get_section(config, 'physics')
        self.ascent_time_step = section.get('ascent_time_step', 10)
        self.descent_time_step = section.get('descent_time_step', 5)
        self.max_flight_time = section.get('max_flight_time', 86400)
        self.monte_carlo_samples = section.get('monte_carlo_samples', 200)
        self.logger = logger or get_logger()

    @staticmethod
    def landing_altitude(prediction_input: PredictionInput) -> float:
        if prediction_input.landing_altitude is not None:
            return prediction_input.landing_altitude
        return prediction_input.launch_altitude

    def validate_input(self, prediction_input: PredictionInput):
        """
        Raises:
            ValidationError: Altitudes cannot describe a flight
        """
        launch_altitude = prediction_input.launch_altitude
        landing_altitude = self.landing_altitude(prediction_input)

        if launch_altitude < 0:
            raise ValidationError("Launch altitude cannot be negative", field='launch_location')
        if prediction_input.burst_altitude <= launch_altitude:
            raise ValidationError("Burst altitude must be higher than launch altitude", field='burst_altitude')
        if landing_altitude < 0:
            raise ValidationError("Landing altitude cannot be negative", field='landing_altitude')
        if prediction_input.burst_altitude <= landing_altitude:
            raise ValidationError("Burst altitude must be higher than landing altitude", field='landing_altitude')

    def build_profile(self, prediction_input: PredictionInput,
                      weather: Optional[Sequence[WeatherSample]] = None) -> WindProfile:
        if weather:
            return WindProfile(weather)
        return WindProfile.constant(
            prediction_input.launch_time,
            prediction_input.surface_wind_speed,
            prediction_input.surface_wind_direction
        )

    def predict(
        self,
        prediction_input: PredictionInput,
        weather: Optional[Sequence[WeatherSample]] = None
    ) -> PredictionResult:
        """
        Full flight prediction

        Without weather samples the flight drifts on the input's surface
        wind and weather quality is reported as low.

        Args:
            prediction_input: Launch and balloon parameters
            weather: Weather samples covering the flight

        Returns:
            PredictionResult

        Raises:
            ValidationError: Invalid altitudes
        """
        self.validate_input(prediction_input)

        warnings = []
        profile = self.build_profile(prediction_input, weather)

        if weather:
            validation = validate_weather_data(weather)
            weather_quality = validation.quality
            if not validation.is_valid:
                self.logger.warning(f"Weather data quality issues detected: {len(validation.issues)} issues")
                warnings.append('Weather data failed range checks at some altitudes')
        else:
            weather_quality = 'low'
            warnings.append('Weather data unavailable - using surface wind only')

        ascent = self.calculate_ascent(prediction_input, profile)
        descent = self.calculate_descent(prediction_input, ascent.burst_point, profile)

        trajectory = list(ascent.trajectory) + list(descent.trajectory)
        launch = prediction_input.launch_location
        total_distance = haversine_distance(
            launch.latitude, launch.longitude,
            descent.landing_point.latitude, descent.landing_point.longitude
        ) / 1000

        self.logger.info(
            f"Prediction complete: burst at {ascent.burst_point.latitude:.4f}, "
            f"{ascent.burst_point.longitude:.4f}; landing at {descent.landing_point.latitude:.4f}, "
            f"{descent.landing_point.longitude:.4f} ({total_distance:.1f} km)"
        )

        return PredictionResult(
            trajectory=trajectory,
            ascent=ascent,
            descent=descent,
            burst_site=ascent.burst_point,
            landing_site=descent.landing_point,
            weather_impact=calculate_wind_effects(trajectory, profile if weather else None),
            weather_quality=weather_quality,
            total_duration=ascent.ascent_duration + descent.descent_duration,
            total_distance=total_distance,
            confidence=descent.landing_confidence * QUALITY_CONFIDENCE_FACTOR[weather_quality],
            warnings=warnings
        )

    def calculate_ascent(self, prediction_input: PredictionInput, profile: WindProfile) -> AscentResult:
        """
        Constant-rate ascent from launch to burst

        Args:
            prediction_input: Launch and balloon parameters
            profile: Wind profile

        Returns:
            AscentResult whose last point is the burst point
        """
        launch_time = ensure_utc(prediction_input.launch_time)
        lat = prediction_input.launch_location.latitude
        lng = prediction_input.launch_location.longitude
        altitude = prediction_input.launch_altitude
        burst_altitude = prediction_input.burst_altitude
        rate = prediction_input.ascent_rate

        elapsed = 0.0
        wind_drift = 0.0
        trajectory = [TrajectoryPoint(
            latitude=lat, longitude=lng, altitude=altitude, timestamp=launch_time, phase='ascent'
        )]

        while altitude < burst_altitude:
            remaining = (burst_altitude - altitude) / rate
            final = remaining <= self.ascent_time_step
            step = remaining if final else self.ascent_time_step
            state = profile.at(altitude, launch_time + timedelta(seconds=elapsed))

            lat, lng = drift_position(lat, lng, state.wind_speed, state.wind_direction, step)
            wind_drift += state.wind_speed * step / 1000
            elapsed += step
            altitude = burst_altitude if final else altitude + rate * step

            trajectory.append(TrajectoryPoint(
                latitude=lat,
                longitude=lng,
                altitude=altitude,
                timestamp=launch_time + timedelta(seconds=elapsed),
                phase='ascent'
            ))

        return AscentResult(
            trajectory=trajectory,
            burst_point=trajectory[-1],
            ascent_duration=elapsed,
            wind_drift=wind_drift
        )

    def calculate_descent(
        self,
        prediction_input: PredictionInput,
        burst_point: TrajectoryPoint,
        profile: WindProfile
    ) -> DescentResult:
        """
        Parachute descent from burst, starting at rest

        Args:
            prediction_input: Launch and balloon parameters
            burst_point: Where the descent starts
            profile: Wind profile

        Returns:
            DescentResult whose last point is the landing point
        """
        landing_altitude = self.landing_altitude(prediction_input)
        mass = prediction_input.payload_weight
        area = prediction_input.parachute_area
        drag = prediction_input.drag_coefficient

        burst_time = ensure_utc(burst_point.timestamp)
        lat = burst_point.latitude
        lng = burst_point.longitude
        altitude = burst_point.altitude

        elapsed = 0.0
        velocity = 0.0
        max_velocity = 0.0
        wind_drift = 0.0
        trajectory: List[TrajectoryPoint] = []

        while altitude > landing_altitude and elapsed < self.max_flight_time:
            step = min(self.descent_time_step, self.max_flight_time - elapsed)
            density = calculate_density(max(0.0, altitude))
            velocity = step_descent_velocity(velocity, mass, density, area, drag, step)
            max_velocity = max(max_velocity, velocity)

            # Last step ends exactly at ground level
            drop = velocity * step
            if altitude - drop < landing_altitude + 0.5:
                step = (altitude - landing_altitude) / velocity
                drop = altitude - landing_altitude

            state = profile.at(altitude, burst_time + timedelta(seconds=elapsed))
            lat, lng = drift_position(lat, lng, state.wind_speed, state.wind_direction, step)
            wind_drift += state.wind_speed * step / 1000
            elapsed += step
            altitude = max(landing_altitude, altitude - drop)

            trajectory.append(TrajectoryPoint(
                latitude=lat,
                longitude=lng,
                altitude=altitude,
                timestamp=burst_time + timedelta(seconds=elapsed),
                phase='descent'
            ))

        if not trajectory:
            trajectory.append(burst_point.model_copy(update={'phase': 'descent'}))

        if elapsed >= self.max_flight_time and altitude > landing_altitude:
            self.logger.warning(f"Descent stopped at {altitude:.0f}m after maximum flight time")

        terminal_velocity = calculate_terminal_velocity(mass, calculate_density(landing_altitude), area, drag)

        return DescentResult(
            trajectory=trajectory,
            landing_point=trajectory[-1],
            descent_duration=elapsed,
            terminal_velocity=terminal_velocity,
            max_velocity=max_velocity,
            wind_drift=wind_drift,
            landing_confidence=calculate_landing_confidence(elapsed, max_velocity, wind_drift, terminal_velocity)
        )

    def monte_carlo_landing(
        self,
        prediction_input: PredictionInput,
        weather: Optional[Sequence[WeatherSample]] = None,
        samples: Optional[int] = None,
        speed_error: float = 2.0,
        direction_error: float = 15.0,
        seed: Optional[int] = None
    ) -> MonteCarloLandingResult:
        """
        Landing scatter from normally perturbed wind levels

        Args:
            prediction_input: Launch and balloon parameters
            weather: Weather samples covering the flight
            samples: Number of simulated flights
            speed_error: Wind speed standard deviation (m/s)
            direction_error: Wind direction standard deviation (degrees)
            seed: RNG seed for reproducible runs

        Returns:
            MonteCarloLandingResult with 95th percentile and maximum radii (km)
        """
        self.validate_input(prediction_input)
        samples = samples or self.monte_carlo_samples
        rng = np.random.default_rng(seed)
        profile = self.build_profile(prediction_input, weather)
        level_count = len(profile.levels)

        landings = np.empty((samples, 2))
        for i in range(samples):
            perturbed = profile.perturbed(
                rng.normal(0.0, speed_error, level_count),
                rng.normal(0.0, direction_error, level_count)
            )
            ascent = self.calculate_ascent(prediction_input, perturbed)
            descent = self.calculate_descent(prediction_input, ascent.burst_point, perturbed)
            landings[i] = (descent.landing_point.latitude, descent.landing_point.longitude)

        mean_lat = float(landings[:, 0].mean())
        mean_lng = float(landings[:, 1].mean())
        distances = np.array([
            haversine_distance(mean_lat, mean_lng, lat, lng) / 1000 for lat, lng in landings
        ])

        return MonteCarloLandingResult(
            samples=samples,
            mean_latitude=mean_lat,
            mean_longitude=mean_lng,
            radius_95=float(np.percentile(distances, 95)),
            max_radius=float(distances.max())
        )
