"""Tests for forecast quality assessment."""

from datetime import timedelta

import pytest

from flightpath.data_processing.weather_quality import (
    WeatherQualityAssessor,
    assess_temporal_quality,
    calculate_overall_confidence,
    determine_overall_quality,
    get_model_characteristics,
    is_over_ocean,
)
from flightpath.models.quality import AltitudeRange, EnsembleData, QualityRequest

from tests.conftest import DENVER, LAUNCH_TIME


NOW = LAUNCH_TIME


def quality_request(age_hours=1, horizon_hours=12, model='GFS', altitude_range=(1600, 30000), **kwargs):
    forecast_time = NOW - timedelta(hours=age_hours)
    return QualityRequest(
        forecast_time=forecast_time,
        target_time=forecast_time + timedelta(hours=horizon_hours),
        location=DENVER,
        altitude_range=AltitudeRange(min=altitude_range[0], max=altitude_range[1]),
        weather_model=model,
        **kwargs
    )


class TestWeatherQualityAssessor:
    def setup_method(self):
        self.assessor = WeatherQualityAssessor(clock=lambda: NOW)

    def test_fresh_short_range_forecast(self):
        """A one-hour-old GFS run used twelve hours ahead rates good."""
        assessment = self.assessor.assess(quality_request())

        assert assessment.temporal == 'high'
        assert assessment.spatial == 'medium'
        assert assessment.overall == 'good'
        assert assessment.confidence == pytest.approx(0.8535, abs=1e-3)
        assert assessment.uncertainty == pytest.approx(0.39)
        assert assessment.reliability.forecast_age == pytest.approx(1)
        assert assessment.reliability.forecast_horizon == pytest.approx(12)
        assert assessment.issues == []
        assert assessment.recommendations == ['Weather data quality is acceptable for balloon predictions']

    def test_stale_long_range_forecast(self):
        assessment = self.assessor.assess(quality_request(age_hours=20, horizon_hours=200))

        assert 'Forecast data is outdated' in assessment.issues
        assert 'Forecast beyond reliable horizon' in assessment.issues
        assert assessment.temporal == 'low'

    def test_unknown_model(self):
        assessment = self.assessor.assess(quality_request(model='XYZ'))
        assert 'Unknown model characteristics' in assessment.issues

    def test_ensemble_spread_is_reported(self):
        assessment = self.assessor.assess(
            quality_request(ensemble_data=EnsembleData(member_count=25, spread=0.1))
        )
        assert assessment.reliability.ensemble_spread == 0.1

    def test_invalid_altitude_range_gives_fallback(self):
        """Bad input never raises, it yields a poor assessment."""
        assessment = self.assessor.assess(quality_request(altitude_range=(5000, 1000)))

        assert assessment.overall == 'poor'
        assert assessment.confidence == 0.1
        assert assessment.issues == ['Quality assessment failed']


class TestScoring:
    def test_overall_quality_bands(self):
        assert determine_overall_quality(0.85, 'high', 'high') == 'excellent'
        assert determine_overall_quality(0.65, 'medium', 'medium') == 'fair'
        assert determine_overall_quality(0.3, 'low', 'low') == 'poor'

    def test_ocean_boxes(self):
        """The Eastern Pacific box reaches inland over North America."""
        assert is_over_ocean(39.74, -104.98)
        assert not is_over_ocean(47.0, 100.0)

    def test_beyond_horizon_is_low(self):
        score = assess_temporal_quality(500, 1, get_model_characteristics('GFS'))
        assert score.quality == 'low'
        assert 'Beyond reliable forecast horizon' in score.factors

    def test_large_ensemble_raises_confidence(self):
        model = get_model_characteristics('ECMWF')
        base = calculate_overall_confidence(0.7, 0.7, model)
        boosted = calculate_overall_confidence(0.7, 0.7, model, EnsembleData(member_count=25, spread=0.0))
        assert boosted > base

    def test_confidence_is_bounded(self):
        model = get_model_characteristics('ECMWF')
        assert calculate_overall_confidence(1.0, 1.0, model, EnsembleData(member_count=50, spread=0)) <= 1.0
