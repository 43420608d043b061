"""
Weather selection pipeline
Forecast window, model choice, fetch, trajectory interpolation and quality
"""
import math
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from api.services.weather_service import WeatherService
from flightpath.config import get_section
from flightpath.data_processing.forecast_window import ForecastWindowSelector
from flightpath.data_processing.interpolation import TemporalInterpolator
from flightpath.data_processing.weather_quality import WeatherQualityAssessor
from flightpath.exceptions import ValidationError
from flightpath.models.forecast import (
    ForecastWindow,
    ForecastWindowRequest,
    ModelResolution,
    ModelSelection,
    WeatherModel,
)
from flightpath.models.quality import AltitudeRange, EnsembleData, HistoricalAccuracy, QualityRequest
from flightpath.models.selection import (
    SelectionPerformance,
    SelectionWeatherData,
    Timeline,
    WeatherSelectionRequest,
    WeatherSelectionResult,
)
from flightpath.models.weather import InterpolationRequest, InterpolationResult, TemporalDataPoint, WeatherRequest
from flightpath.utils.helpers import ensure_utc, utc_now
from flightpath.utils.logger import get_logger


SURFACE_LEVEL = 10

FALLBACK_MODEL = WeatherModel(
    model='Fallback',
    update_cycle=12,
    latency=6,
    max_forecast_hours=72,
    resolution=ModelResolution(temporal='6hourly', spatial=50, vertical=20)
)


def calculate_weather_window(launch_time: datetime, flight_duration: float) -> Tuple[datetime, datetime]:
    """
    Time range of weather data needed around a flight

    Args:
        launch_time: Launch time
        flight_duration: Flight duration in minutes

    Returns:
        Tuple of (start, end): two hours before launch to one hour after landing
    """
    launch = ensure_utc(launch_time)
    return launch - timedelta(hours=2), launch + timedelta(minutes=flight_duration + 60)


def trajectory_altitude(
    minutes_from_launch: float,
    ascent_time: float,
    total_time: float,
    launch_altitude: float,
    burst_altitude: float
) -> float:
    """Altitude along a linear ascent to burst and a linear descent back to launch altitude"""
    span = burst_altitude - launch_altitude
    if minutes_from_launch <= ascent_time:
        ratio = minutes_from_launch / ascent_time if ascent_time > 0 else 1.0
        return launch_altitude + span * ratio

    descent_time = total_time - ascent_time
    ratio = (minutes_from_launch - ascent_time) / descent_time if descent_time > 0 else 1.0
    return burst_altitude - span * min(1.0, ratio)


def generate_timeline(window: ForecastWindow, model: WeatherModel, now: datetime) -> Timeline:
    """Freshness, remaining validity and next model update as readable strings"""
    start = ensure_utc(window.start)

    age_hours = (now - start).total_seconds() / 3600
    if age_hours < 1:
        freshness = 'Very fresh (< 1 hour old)'
    elif age_hours < 6:
        freshness = f"Fresh ({round(age_hours)} hours old)"
    elif age_hours < 24:
        freshness = f"Moderate ({round(age_hours)} hours old)"
    else:
        freshness = f"Old ({round(age_hours / 24)} days old)"

    validity_end = start + timedelta(hours=model.max_forecast_hours)
    validity_hours = max(0.0, (validity_end - now).total_seconds() / 3600)

    cycle_seconds = model.update_cycle * 3600
    epoch = now.timestamp()
    next_update = (math.floor(epoch / cycle_seconds) + 1) * cycle_seconds
    hours_to_update = (next_update - epoch) / 3600

    return Timeline(
        data_freshness=freshness,
        validity_period=f"Valid for {round(validity_hours)} more hours",
        next_update=f"Next update in {round(hours_to_update)} hours"
    )


class WeatherSelectionService:
    """
    Chooses and prepares weather data for a planned flight
    """

    def __init__(
        self,
        weather_service: WeatherService,
        config: Optional[Dict] = None,
        window_selector: Optional[ForecastWindowSelector] = None,
        interpolator: Optional[TemporalInterpolator] = None,
        quality_assessor: Optional[WeatherQualityAssessor] = None,
        logger=None,
        clock=utc_now
    ):
        """
        Initialize selection service

        Args:
            weather_service: Resilient weather data source
            config: Full prediction config
            window_selector: Forecast window selector
            interpolator: Temporal-spatial interpolator
            quality_assessor: Weather quality assessor
            logger: Logger instance
            clock: Current-time source
        """
        self.logger = logger or get_logger()
        self.clock = clock
        self.weather_service = weather_service
        self.window_selector = window_selector or ForecastWindowSelector(config, logger=self.logger, clock=clock)
        self.interpolator = interpolator or TemporalInterpolator(config, logger=self.logger)
        self.quality_assessor = quality_assessor or WeatherQualityAssessor(logger=self.logger, clock=clock)

        section = get_section(config, 'weather_selection')
        self.step_minutes = section.get('interpolation_step_minutes', 10)
        self.temporal_tolerance = section.get('temporal_tolerance_minutes', 180)
        self.spatial_tolerance = section.get('spatial_tolerance_meters', 2000)
        self.quality_threshold = section.get('quality_threshold', 0.3)

        quality = get_section(config, 'weather_quality')
        self.ensemble = EnsembleData(
            member_count=quality.get('default_ensemble_members', 15),
            spread=quality.get('default_ensemble_spread', 0.3)
        )
        self.historical = HistoricalAccuracy(
            recent=quality.get('default_recent_accuracy', 0.85),
            seasonal=quality.get('default_seasonal_accuracy', 0.80)
        )

    async def select_weather_data(self, request: WeatherSelectionRequest) -> WeatherSelectionResult:
        """
        Select, fetch and interpolate weather data for a flight

        Never raises: failures yield success=False with fallback content.

        Args:
            request: Launch, balloon specs and preferences

        Returns:
            WeatherSelectionResult
        """
        started = time.perf_counter()
        warnings: List[str] = []
        recommendations: List[str] = []
        preferences = request.preferences

        try:
            window_request = self._window_request(request)
            self.window_selector.validate_request(window_request)
            window = self.window_selector.calculate_forecast_window(window_request)

            threshold = preferences.quality_threshold
            if threshold is None:
                threshold = self.quality_threshold
            if window.quality.uncertainty_factor > 1 - threshold:
                warnings.append('Forecast window quality below threshold')
                recommendations.append('Consider adjusting launch time or increasing safety margins')

            selection = self.window_selector.select_optimal_weather_model(window)
            selection = self._apply_preferred_model(selection, preferences.preferred_model, warnings)

            surface_data, altitude_data = await self._fetch_weather(request, window)
            interpolated = self._interpolate_trajectory(
                request, window, surface_data + altitude_data, preferences.interpolation_method
            )

            quality = self.quality_assessor.assess(QualityRequest(
                forecast_time=window.start,
                target_time=request.launch_time,
                location=request.launch_location,
                altitude_range=AltitudeRange(
                    min=window.altitude_requirements.min,
                    max=window.altitude_requirements.max
                ),
                weather_model=selection.selected_model.model,
                ensemble_data=self.ensemble,
                historical_accuracy=self.historical
            ))

            if quality.overall == 'excellent':
                recommendations.append('Weather data quality is excellent for balloon prediction')
            elif quality.overall == 'poor':
                recommendations.append('Consider postponing launch due to poor weather data quality')

            cache = self.weather_service.cache
            performance = SelectionPerformance(
                selection_time=(time.perf_counter() - started) * 1000,
                data_points=len(surface_data) + len(altitude_data),
                cache_hit_rate=cache.hit_rate() if cache is not None else 0.0
            )

            self.logger.info(
                f"Weather selection complete: model {selection.selected_model.model}, "
                f"{performance.data_points} data points, quality {quality.overall}"
            )

            return WeatherSelectionResult(
                success=True,
                forecast_window=window,
                selected_model=selection,
                weather_data=SelectionWeatherData(
                    surface_data=surface_data,
                    altitude_data=altitude_data,
                    interpolated_data=interpolated
                ),
                quality_assessment=quality,
                timeline=generate_timeline(window, selection.selected_model, self.clock()),
                performance=performance,
                warnings=warnings,
                recommendations=recommendations + window.quality.recommendations + quality.recommendations
            )

        except Exception as e:
            self.logger.error(f"Weather selection failed: {e}")
            return self.fallback_result(e, (time.perf_counter() - started) * 1000)

    @staticmethod
    def _window_request(request: WeatherSelectionRequest) -> ForecastWindowRequest:
        return ForecastWindowRequest(
            launch_time=request.launch_time,
            launch_location=request.launch_location,
            balloon_specs=request.balloon_specs,
            uncertainty_margin=request.preferences.uncertainty_margin,
            forecast_resolution=request.preferences.forecast_resolution
        )

    def _apply_preferred_model(
        self,
        selection: ModelSelection,
        preferred: Optional[str],
        warnings: List[str]
    ) -> ModelSelection:
        if not preferred:
            return selection

        candidates = [selection.selected_model] + list(selection.alternatives)
        match = next((m for m in candidates if m.model == preferred), None)
        if match is None:
            warnings.append(f"Preferred model '{preferred}' not suitable for this forecast window")
            return selection

        alternatives = [m for m in candidates if m.model != preferred]
        return ModelSelection(
            selected_model=match,
            reasoning=['User preferred model selected'] + list(selection.reasoning),
            alternatives=alternatives
        )

    async def _fetch_weather(
        self,
        request: WeatherSelectionRequest,
        window: ForecastWindow
    ) -> Tuple[List[TemporalDataPoint], List[TemporalDataPoint]]:
        """
        Raises:
            AllProvidersFailedError: No weather provider answered
        """
        start = ensure_utc(window.start)
        end = ensure_utc(window.end)
        weather_request = WeatherRequest(
            latitude=request.launch_location.latitude,
            longitude=request.launch_location.longitude,
            start_date=start.date(),
            end_date=end.date()
        )

        altitudes = [a for a in window.altitude_requirements.intervals if a > SURFACE_LEVEL]
        dataset = await self.weather_service.fetch_and_parse_weather(weather_request, altitudes)

        surface = [TemporalDataPoint.from_sample(s) for s in dataset.surface_data]
        aloft = [TemporalDataPoint.from_sample(s) for s in dataset.altitude_data]
        return surface, aloft

    def _interpolate_trajectory(
        self,
        request: WeatherSelectionRequest,
        window: ForecastWindow,
        data_points: List[TemporalDataPoint],
        method: str
    ) -> List[InterpolationResult]:
        launch_time = ensure_utc(request.launch_time)
        launch_altitude = request.launch_location.altitude or 0.0
        burst_altitude = request.balloon_specs.burst_altitude
        ascent_time = window.flight_duration.ascent_time
        total_time = window.flight_duration.total_flight_time

        results = []
        minutes = 0
        while minutes <= total_time:
            altitude = trajectory_altitude(minutes, ascent_time, total_time, launch_altitude, burst_altitude)
            results.append(self.interpolator.interpolate(InterpolationRequest(
                target_time=launch_time + timedelta(minutes=minutes),
                target_altitude=altitude,
                data_points=data_points,
                method=method,
                temporal_tolerance=self.temporal_tolerance,
                spatial_tolerance=self.spatial_tolerance
            )))
            minutes += self.step_minutes

        return results

    def fallback_result(self, error: Exception, elapsed_ms: float = 0.0) -> WeatherSelectionResult:
        window = self.window_selector.fallback_window()
        window = window.model_copy(update={
            'quality': window.quality.model_copy(update={
                'recommendations': ['Error in weather selection - use fallback data']
            })
        })

        assessment = self.quality_assessor.fallback_assessment().model_copy(update={
            'issues': ['Weather selection failed'],
            'recommendations': ['Use alternative weather sources']
        })

        if isinstance(error, ValidationError):
            message = f"Invalid weather selection request: {error}"
        else:
            message = f"Weather selection error: {error}"

        return WeatherSelectionResult(
            success=False,
            forecast_window=window,
            selected_model=ModelSelection(
                selected_model=FALLBACK_MODEL,
                reasoning=['Error fallback'],
                alternatives=[]
            ),
            quality_assessment=assessment,
            timeline=Timeline(data_freshness='Unknown', validity_period='Unknown', next_update='Unknown'),
            performance=SelectionPerformance(selection_time=elapsed_ms),
            warnings=[message],
            recommendations=['Use alternative weather data sources', 'Consider postponing launch']
        )
