"""
Weather forecast quality assessment
Scores forecast reliability from model characteristics, age, horizon and location
"""

from datetime import datetime
from typing import Callable, List, NamedTuple, Optional, Tuple

from flightpath.exceptions import ValidationError
from flightpath.models.quality import (
    AltitudeRange,
    EnsembleData,
    HistoricalAccuracy,
    ModelCharacteristics,
    QualityRequest,
    ReliabilityMetrics,
    SkillScores,
    WeatherQualityAssessment,
)
from flightpath.utils.helpers import ensure_utc, utc_now
from flightpath.utils.logger import get_logger


def _characteristics(temporal, spatial, vertical, update, skills, horizon) -> ModelCharacteristics:
    temperature, pressure, wind_speed, wind_direction = skills
    return ModelCharacteristics(
        temporal_resolution=temporal,
        spatial_resolution=spatial,
        vertical_levels=vertical,
        update_frequency=update,
        skill_scores=SkillScores(
            temperature=temperature,
            pressure=pressure,
            wind_speed=wind_speed,
            wind_direction=wind_direction
        ),
        max_reliable_horizon=horizon
    )


MODEL_DATABASE = {
    'GFS': _characteristics(3, 25, 31, 6, (0.85, 0.90, 0.75, 0.70), 168),
    'ECMWF': _characteristics(6, 18, 37, 12, (0.92, 0.95, 0.85, 0.80), 240),
    'NAM': _characteristics(1, 12, 40, 6, (0.88, 0.92, 0.80, 0.75), 84),
    'Open-Meteo': _characteristics(1, 11, 25, 1, (0.80, 0.85, 0.72, 0.68), 240),
}

UNKNOWN_MODEL = _characteristics(6, 50, 20, 12, (0.60, 0.65, 0.55, 0.50), 72)

# (lat_min, lat_max, lng_min, lng_max)
OCEAN_BOXES = [
    (-60, 60, -180, -60),   # Eastern Pacific
    (-60, 60, 120, 180),    # Western Pacific
    (-60, 70, -60, 20),     # Atlantic
    (-60, 30, 20, 120),     # Indian
]


class QualityScore(NamedTuple):
    quality: str
    score: float
    factors: List[str]


def get_model_characteristics(model_name: str) -> ModelCharacteristics:
    return MODEL_DATABASE.get(model_name, UNKNOWN_MODEL)


def is_over_ocean(lat: float, lng: float) -> bool:
    """Rough ocean check against a few bounding boxes"""
    return any(
        lat_min <= lat <= lat_max and lng_min <= lng <= lng_max
        for lat_min, lat_max, lng_min, lng_max in OCEAN_BOXES
    )


def assess_temporal_quality(
    forecast_horizon: float,
    forecast_age: float,
    model: ModelCharacteristics
) -> QualityScore:
    factors = []
    score = 1.0

    if forecast_horizon <= 24:
        factors.append('Short-term forecast: high accuracy expected')
    elif forecast_horizon <= 72:
        factors.append('Medium-term forecast: good accuracy expected')
        score *= 0.85
    elif forecast_horizon <= model.max_reliable_horizon:
        factors.append('Long-term forecast: moderate accuracy expected')
        score *= 0.65
    else:
        factors.append('Beyond reliable forecast horizon')
        score *= 0.35

    if forecast_age <= model.update_frequency:
        factors.append('Recent model run: data is fresh')
    elif forecast_age <= model.update_frequency * 2:
        factors.append('Moderate age: data still reliable')
        score *= 0.90
    else:
        factors.append('Old forecast data: accuracy degraded')
        score *= 0.70

    if model.update_frequency <= 6:
        factors.append('Frequent model updates improve reliability')
        score *= 1.05

    if score >= 0.8:
        quality = 'high'
    elif score >= 0.5:
        quality = 'medium'
    else:
        quality = 'low'

    return QualityScore(quality, min(1.0, score), factors)


def assess_spatial_quality(
    lat: float,
    lng: float,
    altitude_range: AltitudeRange,
    model: ModelCharacteristics
) -> QualityScore:
    factors = []
    score = 1.0

    if model.spatial_resolution <= 15:
        factors.append('High spatial resolution model')
    elif model.spatial_resolution <= 30:
        factors.append('Medium spatial resolution model')
        score *= 0.85
    else:
        factors.append('Coarse spatial resolution model')
        score *= 0.70

    if is_over_ocean(lat, lng):
        factors.append('Ocean location: typically better model accuracy')
        score *= 1.05
    else:
        factors.append('Land location: terrain effects may reduce accuracy')
        score *= 0.95

    if abs(lat) >= 60:
        factors.append('High latitude: reduced model accuracy')
        score *= 0.85
    elif abs(lat) <= 10:
        factors.append('Tropical region: convective processes challenging for models')
        score *= 0.90
    else:
        factors.append('Mid-latitude location: optimal model performance')

    altitude_span = altitude_range.max - altitude_range.min
    if altitude_span > 20000:
        factors.append('Large altitude range: increased interpolation uncertainty')
        score *= 0.85
    elif altitude_span > 10000:
        factors.append('Moderate altitude range: some interpolation uncertainty')
        score *= 0.92
    else:
        factors.append('Small altitude range: minimal interpolation uncertainty')

    if altitude_range.max > 30000:
        factors.append('Very high altitude: sparse observational data')
        score *= 0.80
    elif altitude_range.max > 20000:
        factors.append('High altitude: reduced model accuracy')
        score *= 0.90

    if model.vertical_levels >= 35:
        factors.append('High vertical resolution: good altitude interpolation')
    elif model.vertical_levels >= 25:
        factors.append('Adequate vertical resolution')
        score *= 0.95
    else:
        factors.append('Limited vertical resolution')
        score *= 0.85

    if score >= 0.8:
        quality = 'high'
    elif score >= 0.6:
        quality = 'medium'
    else:
        quality = 'low'

    return QualityScore(quality, min(1.0, score), factors)


def calculate_overall_confidence(
    temporal_score: float,
    spatial_score: float,
    model: ModelCharacteristics,
    ensemble_data: Optional[EnsembleData] = None,
    historical_accuracy: Optional[HistoricalAccuracy] = None
) -> float:
    confidence = temporal_score * 0.6 + spatial_score * 0.4

    if ensemble_data is not None:
        if ensemble_data.member_count >= 20:
            confidence *= 1.1
        elif ensemble_data.member_count >= 10:
            confidence *= 1.05
        confidence *= max(0.7, 1.0 - ensemble_data.spread)

    if historical_accuracy is not None:
        historical = historical_accuracy.recent * 0.7 + historical_accuracy.seasonal * 0.3
        confidence = confidence * 0.8 + historical * 0.2

    confidence = confidence * 0.9 + model.skill_scores.average() * 0.1

    return max(0.0, min(1.0, confidence))


def calculate_uncertainty(
    forecast_horizon: float,
    model: ModelCharacteristics,
    ensemble_data: Optional[EnsembleData] = None
) -> float:
    uncertainty = 0.1

    if forecast_horizon <= 24:
        uncertainty += 0.05
    elif forecast_horizon <= 72:
        uncertainty += 0.15
    elif forecast_horizon <= 168:
        uncertainty += 0.30
    else:
        uncertainty += 0.50

    if ensemble_data is not None:
        uncertainty += ensemble_data.spread * 0.3
    else:
        uncertainty += 0.2

    uncertainty += (1.0 - model.skill_scores.average()) * 0.2

    return max(0.0, min(1.0, uncertainty))


def determine_overall_quality(confidence: float, temporal: str, spatial: str) -> str:
    """Map averaged 3/2/1 scores to excellent, good, fair or poor"""
    rank = {'high': 3, 'medium': 2, 'low': 1}
    confidence_score = 3 if confidence >= 0.8 else 2 if confidence >= 0.6 else 1

    total = (rank[temporal] + rank[spatial] + confidence_score) / 3
    if total >= 2.7:
        return 'excellent'
    if total >= 2.3:
        return 'good'
    if total >= 1.7:
        return 'fair'
    return 'poor'


class WeatherQualityAssessor:
    """
    Rates how far a forecast can be trusted for a balloon flight
    """

    def __init__(self, logger=None, clock: Callable[[], datetime] = utc_now):
        self.logger = logger or get_logger()
        self.clock = clock

    def assess(self, request: QualityRequest) -> WeatherQualityAssessment:
        """
        Assess forecast quality

        Never raises: any failure yields a poor, low-confidence assessment.

        Args:
            request: Forecast metadata, location, altitude range and model

        Returns:
            WeatherQualityAssessment
        """
        try:
            self._validate(request)

            forecast_time = ensure_utc(request.forecast_time)
            target_time = ensure_utc(request.target_time)

            forecast_age = (self.clock() - forecast_time).total_seconds() / 3600
            forecast_horizon = (target_time - forecast_time).total_seconds() / 3600

            model = get_model_characteristics(request.weather_model)
            temporal = assess_temporal_quality(forecast_horizon, forecast_age, model)
            spatial = assess_spatial_quality(
                request.location.latitude, request.location.longitude,
                request.altitude_range, model
            )

            confidence = calculate_overall_confidence(
                temporal.score, spatial.score, model,
                request.ensemble_data, request.historical_accuracy
            )
            uncertainty = calculate_uncertainty(forecast_horizon, model, request.ensemble_data)

            issues, recommendations = self._identify_issues(
                forecast_age, forecast_horizon, temporal, spatial, confidence,
                model, request.weather_model not in MODEL_DATABASE
            )

            return WeatherQualityAssessment(
                overall=determine_overall_quality(confidence, temporal.quality, spatial.quality),
                temporal=temporal.quality,
                spatial=spatial.quality,
                confidence=confidence,
                uncertainty=uncertainty,
                reliability=ReliabilityMetrics(
                    forecast_age=forecast_age,
                    forecast_horizon=forecast_horizon,
                    model_confidence=model.skill_scores.temperature,
                    ensemble_spread=request.ensemble_data.spread if request.ensemble_data else 0.0
                ),
                issues=issues,
                recommendations=recommendations
            )

        except Exception as e:
            self.logger.error(f"Weather quality assessment failed: {e}")
            return self.fallback_assessment()

    @staticmethod
    def fallback_assessment() -> WeatherQualityAssessment:
        return WeatherQualityAssessment(
            overall='poor',
            temporal='low',
            spatial='low',
            confidence=0.1,
            uncertainty=0.9,
            reliability=ReliabilityMetrics(
                forecast_age=0.0,
                forecast_horizon=0.0,
                model_confidence=0.1,
                ensemble_spread=1.0
            ),
            issues=['Quality assessment failed'],
            recommendations=['Use alternative data source or increase safety margins']
        )

    @staticmethod
    def _validate(request: QualityRequest):
        altitude_range = request.altitude_range
        if altitude_range.min < 0 or altitude_range.max <= altitude_range.min:
            raise ValidationError("Invalid altitude range", field='altitude_range')
        if not request.weather_model:
            raise ValidationError("Weather model name is required", field='weather_model')

    @staticmethod
    def _identify_issues(
        forecast_age: float,
        forecast_horizon: float,
        temporal: QualityScore,
        spatial: QualityScore,
        confidence: float,
        model: ModelCharacteristics,
        unknown_model: bool
    ) -> Tuple[List[str], List[str]]:
        issues = []
        recommendations = []

        if forecast_age > model.update_frequency * 2:
            issues.append('Forecast data is outdated')
            recommendations.append('Use more recent model run if available')

        if forecast_horizon > model.max_reliable_horizon:
            issues.append('Forecast beyond reliable horizon')
            recommendations.append('Consider using ensemble data or increase uncertainty margins')

        if confidence < 0.5:
            issues.append('Overall confidence is low')
            recommendations.append('Consider delaying launch or using alternative weather sources')
        elif confidence < 0.7:
            issues.append('Moderate confidence level')
            recommendations.append('Increase safety margins and monitor weather updates')

        if temporal.quality == 'low':
            issues.append('Poor temporal quality')
            recommendations.append('Use shorter forecast horizon or wait for updated model run')

        if spatial.quality == 'low':
            issues.append('Poor spatial quality')
            recommendations.append('Consider higher resolution model or local weather observations')

        if unknown_model:
            issues.append('Unknown model characteristics')
            recommendations.append('Use established weather models with known performance')

        if not issues:
            recommendations.append('Weather data quality is acceptable for balloon predictions')

        return issues, recommendations
