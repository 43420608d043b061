"""
Forecast window selection
Sizes the weather data window around a launch and picks the best-fit model
"""

import math
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from flightpath.config import get_section
from flightpath.data_processing.altitude_profile import FALLBACK_REQUIREMENTS, calculate_altitude_requirements
from flightpath.data_processing.flight_duration import (
    FALLBACK_ESTIMATE,
    estimate_flight_duration,
    get_recommended_forecast_window,
    validate_flight_parameters,
)
from flightpath.exceptions import PredictionError, ValidationError
from flightpath.models.forecast import (
    AltitudeRequirements,
    FlightDurationEstimate,
    ForecastWindow,
    ForecastWindowQuality,
    ForecastWindowRequest,
    ForecastWindowUpdate,
    ModelResolution,
    ModelSelection,
    WeatherModel,
)
from flightpath.utils.helpers import ensure_utc, utc_now
from flightpath.utils.logger import get_logger


RESOLUTION_MINUTES = {'hourly': 60, '3hourly': 180, '6hourly': 360}

# model, update cycle (h), latency (h), horizon (h), temporal, spatial (km), vertical levels
_MODEL_CATALOGUE = [
    ('GFS', 6, 4, 384, '3hourly', 25, 31),
    ('ECMWF', 12, 6, 240, '6hourly', 18, 37),
    ('NAM', 6, 2, 84, 'hourly', 12, 40),
    ('Open-Meteo', 1, 1, 240, 'hourly', 11, 25),
]


def get_available_weather_models() -> List[WeatherModel]:
    """Numerical weather models known to the selector"""
    return [
        WeatherModel(
            model=name,
            update_cycle=update,
            latency=latency,
            max_forecast_hours=horizon,
            resolution=ModelResolution(temporal=temporal, spatial=spatial, vertical=vertical)
        )
        for name, update, latency, horizon, temporal, spatial, vertical in _MODEL_CATALOGUE
    ]


class NoSuitableModelError(PredictionError):
    """No weather model covers the required forecast horizon"""


class ForecastWindowSelector:
    """
    Chooses forecast windows and weather models for planned flights
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        logger=None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize selector

        Args:
            config: Full prediction config (the 'forecast_window' section is used)
            logger: Logger instance
            clock: Current-time source for fallback windows and update checks
        """
        section = get_section(config, 'forecast_window')
        self.lookback_minutes = section.get('lookback_minutes', 120)
        self.buffer_minutes = section.get('lookahead_buffer_minutes', 60)
        self.fallback_lookback_hours = section.get('fallback_lookback_hours', 3)
        self.fallback_lookahead_hours = section.get('fallback_lookahead_hours', 24)
        self.logger = logger or get_logger()
        self.clock = clock

    def validate_request(self, request: ForecastWindowRequest):
        """
        Raises:
            ValidationError: Balloon specifications cannot describe a flight
        """
        launch_altitude = request.launch_location.altitude or 0.0
        validate_flight_parameters(request.balloon_specs, launch_altitude)
        if request.uncertainty_margin is not None and request.uncertainty_margin < 0:
            raise ValidationError("uncertainty_margin must not be negative", field='uncertainty_margin')

    def calculate_forecast_window(self, request: ForecastWindowRequest) -> ForecastWindow:
        """
        Forecast window covering the whole flight

        Never raises: any failure yields a conservative fallback window.

        Args:
            request: Launch time, location, balloon specs and preferences

        Returns:
            ForecastWindow
        """
        try:
            self.validate_request(request)

            launch_time = ensure_utc(request.launch_time)
            launch_altitude = request.launch_location.altitude or 0.0
            specs = request.balloon_specs

            flight_duration = estimate_flight_duration(specs, launch_altitude, logger=self.logger)
            altitude_requirements = calculate_altitude_requirements(
                launch_altitude, specs.burst_altitude, logger=self.logger
            )
            recommended = get_recommended_forecast_window(
                flight_duration, launch_time, self.lookback_minutes, self.buffer_minutes
            )

            additional_margin = request.uncertainty_margin or 0
            safety_margin = recommended['safety_margin'] + additional_margin
            start = recommended['start'] - timedelta(minutes=additional_margin)
            end = recommended['end'] + timedelta(minutes=additional_margin)

            resolution = self.determine_resolution(flight_duration, request.forecast_resolution)
            quality = self.assess_window_quality(flight_duration, safety_margin, resolution)

            return ForecastWindow(
                start=start,
                end=end,
                duration=math.ceil((end - start).total_seconds() / 3600),
                resolution=resolution,
                safety_margin=safety_margin,
                flight_duration=flight_duration,
                altitude_requirements=altitude_requirements,
                timezone='UTC',
                quality=quality
            )

        except Exception as e:
            self.logger.error(f"Forecast window calculation failed, using fallback window: {e}")
            return self.fallback_window()

    def fallback_window(self) -> ForecastWindow:
        now = self.clock()
        return ForecastWindow(
            start=now - timedelta(hours=self.fallback_lookback_hours),
            end=now + timedelta(hours=self.fallback_lookahead_hours),
            duration=self.fallback_lookback_hours + self.fallback_lookahead_hours,
            resolution='3hourly',
            safety_margin=180,
            flight_duration=FlightDurationEstimate(**FALLBACK_ESTIMATE),
            altitude_requirements=AltitudeRequirements(**FALLBACK_REQUIREMENTS),
            timezone='UTC',
            quality=ForecastWindowQuality(
                confidence='low',
                uncertainty_factor=0.8,
                recommendations=['Use fallback window due to calculation error']
            )
        )

    @staticmethod
    def determine_resolution(
        flight_duration: FlightDurationEstimate,
        requested: Optional[str] = None
    ) -> str:
        if requested:
            return requested

        if flight_duration.total_flight_time <= 120 and flight_duration.confidence == 'high':
            return 'hourly'
        if flight_duration.total_flight_time <= 360:
            return '3hourly'
        return '6hourly'

    @staticmethod
    def assess_window_quality(
        flight_duration: FlightDurationEstimate,
        safety_margin: float,
        resolution: str
    ) -> ForecastWindowQuality:
        """
        Confidence and uncertainty of a window

        Args:
            flight_duration: Flight duration estimate
            safety_margin: Total safety margin (minutes)
            resolution: Temporal resolution of the window

        Returns:
            ForecastWindowQuality
        """
        recommendations = []
        confidence = flight_duration.confidence
        total = flight_duration.total_flight_time

        uncertainty_factor = flight_duration.uncertainty_margin / total

        margin_ratio = safety_margin / total
        if margin_ratio < 0.2:
            confidence = 'low'
            uncertainty_factor += 0.2
            recommendations.append('Consider increasing safety margin for better forecast coverage')
        elif margin_ratio > 0.8:
            recommendations.append('Large safety margin may include irrelevant weather data')

        if RESOLUTION_MINUTES[resolution] > total / 4:
            confidence = 'medium' if confidence == 'high' else 'low'
            uncertainty_factor += 0.1
            recommendations.append('Consider higher temporal resolution for short flight duration')

        uncertainty_factor = min(1.0, uncertainty_factor)

        if uncertainty_factor > 0.7:
            confidence = 'low'
            recommendations.append('High uncertainty detected - consider validating balloon specifications')
        elif uncertainty_factor > 0.4 and confidence == 'high':
            confidence = 'medium'

        return ForecastWindowQuality(
            confidence=confidence,
            uncertainty_factor=uncertainty_factor,
            recommendations=recommendations
        )

    def select_optimal_weather_model(
        self,
        window: ForecastWindow,
        available_models: Optional[Sequence[WeatherModel]] = None
    ) -> ModelSelection:
        """
        Best-fit weather model for a forecast window

        Args:
            window: Forecast window to cover
            available_models: Candidate models (defaults to the built-in catalogue)

        Returns:
            ModelSelection with reasoning and ranked alternatives

        Raises:
            NoSuitableModelError: No model covers the window's horizon
        """
        models = list(available_models) if available_models is not None else get_available_weather_models()
        reasoning = []

        suitable = []
        for model in models:
            if model.max_forecast_hours >= window.duration:
                suitable.append(model)
            else:
                reasoning.append(
                    f"{model.model} excluded: insufficient forecast horizon "
                    f"({model.max_forecast_hours:g}h < {window.duration}h needed)"
                )

        if not suitable:
            raise NoSuitableModelError("No weather models can provide the required forecast horizon")

        scored = [self._score_model(model, window) for model in suitable]
        # Stable sort keeps catalogue order between equal scores
        scored.sort(key=lambda item: -item[1])

        best_model, best_score, best_reasons = scored[0]
        self.logger.debug(f"Selected weather model {best_model.model} (score {best_score})")

        return ModelSelection(
            selected_model=best_model,
            reasoning=reasoning + best_reasons,
            alternatives=[model for model, _, _ in scored[1:]]
        )

    @staticmethod
    def _score_model(model: WeatherModel, window: ForecastWindow):
        score = 0
        reasons = []

        temporal = model.resolution.temporal
        if temporal == window.resolution:
            score += 3
            reasons.append('Perfect temporal resolution match')
        elif (temporal, window.resolution) in (('hourly', '3hourly'), ('3hourly', '6hourly')):
            score += 2
            reasons.append('Higher temporal resolution available')
        else:
            score += 1
            reasons.append('Temporal resolution acceptable')

        if model.latency <= 2:
            score += 2
            reasons.append('Low data latency')
        elif model.latency <= 4:
            score += 1
            reasons.append('Moderate data latency')
        else:
            reasons.append('High data latency')

        if window.duration <= 12 and model.update_cycle <= 6:
            score += 2
            reasons.append('Frequent updates for short forecast')
        elif model.update_cycle <= 12:
            score += 1
            reasons.append('Regular update cycle')

        if model.resolution.spatial <= 15:
            score += 1
            reasons.append('High spatial resolution')

        return model, score, reasons

    def update_forecast_window(
        self,
        window: ForecastWindow,
        model_update_time: datetime
    ) -> ForecastWindowUpdate:
        """
        Decide whether a newer model run justifies refreshing the window

        Args:
            window: Current forecast window
            model_update_time: Time of the latest model run

        Returns:
            ForecastWindowUpdate
        """
        now = self.clock()
        start = ensure_utc(window.start)
        update_time = ensure_utc(model_update_time)

        if now >= start:
            return ForecastWindowUpdate(
                should_update=False,
                update_reason='Launch time has passed - no update needed'
            )

        hours_to_launch = (start - now).total_seconds() / 3600
        if hours_to_launch > 24 and update_time > start:
            return ForecastWindowUpdate(
                should_update=True,
                update_reason='New model data available - updating for improved accuracy',
                updated_window=window
            )

        return ForecastWindowUpdate(
            should_update=False,
            update_reason='No beneficial update available'
        )
