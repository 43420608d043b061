"""
Temporal-spatial interpolation of weather samples
Resolves values at an arbitrary (time, altitude) with confidence decay
"""

import math
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Sequence

from flightpath.config import get_section
from flightpath.models.weather import InterpolationRequest, InterpolationResult, TemporalDataPoint
from flightpath.utils.helpers import ensure_utc, normalize_angle
from flightpath.utils.logger import get_logger


CIRCULAR_FIELDS = frozenset({'wind_direction'})


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def interpolate_value(a: float, b: float, ratio: float) -> float:
    """
    Linear blend of two scalars

    The ratio is clamped to [0, 1] so the result never leaves [min(a,b), max(a,b)].
    A NaN operand falls back to the other one, two NaNs give 0.
    """
    a_nan = a is None or math.isnan(a)
    b_nan = b is None or math.isnan(b)
    if a_nan and b_nan:
        return 0.0
    if a_nan:
        return b
    if b_nan:
        return a

    ratio = 0.0 if math.isnan(ratio) else clamp(ratio, 0.0, 1.0)
    return clamp(a + (b - a) * ratio, min(a, b), max(a, b))


def interpolate_angle(a: float, b: float, ratio: float) -> float:
    """
    Shortest-arc interpolation between two bearings

    Returns:
        Angle in [0, 360)
    """
    a_nan = a is None or math.isnan(a)
    b_nan = b is None or math.isnan(b)
    if a_nan and b_nan:
        return 0.0
    if a_nan:
        return normalize_angle(b)
    if b_nan:
        return normalize_angle(a)

    ratio = 0.0 if math.isnan(ratio) else clamp(ratio, 0.0, 1.0)
    difference = math.fmod(b - a, 360.0)
    if difference > 180.0:
        difference -= 360.0
    elif difference <= -180.0:
        difference += 360.0

    return normalize_angle(a + difference * ratio)


class _Estimate(NamedTuple):
    values: Dict[str, float]
    confidence: float
    method: str
    points_used: int
    source_quality: float
    warnings: List[str]


class TemporalInterpolator:
    """
    Interpolates weather values between discrete samples

    Methods: exact match, linear (with angular wraparound), cubic-like and
    spline-like smoothing passes over the linear estimate.
    """

    def __init__(self, config: Optional[Dict] = None, logger=None):
        """
        Initialize interpolator

        Args:
            config: Full prediction config (the 'interpolation' section is used)
            logger: Logger instance
        """
        section = get_section(config, 'interpolation')
        self.temporal_tolerance = section.get('temporal_tolerance_minutes', 180)
        self.spatial_tolerance = section.get('spatial_tolerance_meters', 1000)
        self.exact_time_seconds = section.get('exact_time_seconds', 60)
        self.exact_altitude_meters = section.get('exact_altitude_meters', 10)
        self.max_bracket_altitude_gap = section.get('max_bracket_altitude_gap', 2000)
        self.logger = logger or get_logger()

    def interpolate(self, request: InterpolationRequest) -> InterpolationResult:
        """
        Resolve values at the requested time and altitude

        Never raises: failures are reported with method 'error'.

        Args:
            request: Target, samples, method and optional tolerances

        Returns:
            InterpolationResult
        """
        target_time = ensure_utc(request.target_time)
        target_altitude = request.target_altitude

        try:
            temporal_tolerance = (
                request.temporal_tolerance if request.temporal_tolerance is not None
                else self.temporal_tolerance
            )
            spatial_tolerance = (
                request.spatial_tolerance if request.spatial_tolerance is not None
                else self.spatial_tolerance
            )

            candidates = [
                p for p in request.data_points
                if abs(_seconds_between(p.timestamp, target_time)) <= temporal_tolerance * 60
                and abs(p.altitude - target_altitude) <= spatial_tolerance
            ]

            warnings = []
            filtered = len(request.data_points) - len(candidates)
            if filtered > 0:
                warnings.append(f"{filtered} data points filtered out due to tolerance constraints")

            if not candidates:
                warnings.append("No data points within tolerance range")
                return InterpolationResult(
                    timestamp=target_time,
                    altitude=target_altitude,
                    values=None,
                    confidence=0.0,
                    method="none",
                    warnings=warnings
                )

            exact = self._find_exact_match(candidates, target_time, target_altitude)
            if exact is not None:
                return InterpolationResult(
                    timestamp=target_time,
                    altitude=target_altitude,
                    values=dict(exact.values),
                    confidence=1.0,
                    method="exact",
                    data_points_used=1,
                    quality=exact.quality,
                    warnings=warnings
                )

            if request.method == "cubic":
                estimate = self._cubic(candidates, target_time, target_altitude)
            elif request.method == "spline":
                estimate = self._spline(candidates, target_time, target_altitude)
            else:
                if request.method != "linear":
                    warnings.append(f"Unknown interpolation method '{request.method}', using linear")
                estimate = self._linear(candidates, target_time, target_altitude)

            confidence = clamp(estimate.confidence, 0.0, 1.0)
            return InterpolationResult(
                timestamp=target_time,
                altitude=target_altitude,
                values=estimate.values,
                confidence=confidence,
                method=estimate.method,
                data_points_used=estimate.points_used,
                quality=clamp(estimate.source_quality * confidence, 0.0, 1.0),
                warnings=warnings + estimate.warnings
            )

        except Exception as e:
            self.logger.error(f"Interpolation failed at {target_time} / {target_altitude}m: {e}")
            return InterpolationResult(
                timestamp=target_time,
                altitude=target_altitude,
                values=None,
                confidence=0.0,
                method="error",
                warnings=[f"Interpolation failed: {e}"]
            )

    def interpolate_time_series(
        self,
        data_points: Sequence[TemporalDataPoint],
        timestamps: Sequence[datetime],
        altitude: float,
        method: str = "linear"
    ) -> List[InterpolationResult]:
        """
        Interpolate at a fixed altitude for a series of times

        Args:
            data_points: Available samples
            timestamps: Target times
            altitude: Target altitude (m)
            method: linear, cubic or spline

        Returns:
            One InterpolationResult per timestamp
        """
        return [
            self.interpolate(InterpolationRequest(
                target_time=timestamp,
                target_altitude=altitude,
                data_points=list(data_points),
                method=method,
                temporal_tolerance=self.temporal_tolerance,
                spatial_tolerance=self.spatial_tolerance
            ))
            for timestamp in timestamps
        ]

    def _find_exact_match(
        self,
        points: Sequence[TemporalDataPoint],
        target_time: datetime,
        target_altitude: float
    ) -> Optional[TemporalDataPoint]:
        matches = [
            p for p in points
            if abs(_seconds_between(p.timestamp, target_time)) <= self.exact_time_seconds
            and abs(p.altitude - target_altitude) <= self.exact_altitude_meters
        ]
        if not matches:
            return None
        return min(matches, key=lambda p: (
            abs(_seconds_between(p.timestamp, target_time)), abs(p.altitude - target_altitude)
        ))

    def _linear(
        self,
        points: Sequence[TemporalDataPoint],
        target_time: datetime,
        target_altitude: float
    ) -> _Estimate:
        if len(points) < 2:
            point = points[0]
            return _Estimate(dict(point.values), 0.5, "linear", 1, point.quality, [])

        def rank(p):
            return abs(_seconds_between(p.timestamp, target_time)), abs(p.altitude - target_altitude)

        in_band = [
            p for p in points
            if abs(p.altitude - target_altitude) <= self.max_bracket_altitude_gap
        ]
        before_points = [p for p in in_band if _seconds_between(p.timestamp, target_time) <= 0]
        after_points = [p for p in in_band if _seconds_between(p.timestamp, target_time) >= 0]

        if not before_points or not after_points:
            nearest = min(points, key=rank)
            return _Estimate(
                dict(nearest.values), 0.3, "linear", 1, nearest.quality,
                ["Extrapolating from nearest available data point"]
            )

        before = min(before_points, key=rank)
        after = min(after_points, key=rank)

        span = _seconds_between(after.timestamp, before.timestamp)
        ratio = _seconds_between(target_time, before.timestamp) / span if span > 0 else 0.0

        values = {}
        for key in sorted(set(before.values) | set(after.values)):
            a = before.values.get(key, math.nan)
            b = after.values.get(key, math.nan)
            if key in CIRCULAR_FIELDS:
                values[key] = interpolate_angle(a, b, ratio)
            else:
                values[key] = interpolate_value(a, b, ratio)

        time_gap_hours = span / 3600
        altitude_gap = abs(before.altitude - after.altitude)
        confidence = max(0.1, 1.0 - time_gap_hours / 24) * max(0.1, 1.0 - altitude_gap / 5000)
        confidence = clamp(confidence, 0.1, 1.0)

        points_used = 1 if before is after else 2
        return _Estimate(
            values, confidence, "linear", points_used,
            min(before.quality, after.quality), []
        )

    def _cubic(
        self,
        points: Sequence[TemporalDataPoint],
        target_time: datetime,
        target_altitude: float
    ) -> _Estimate:
        linear = self._linear(points, target_time, target_altitude)
        if len(points) < 4:
            return linear._replace(confidence=linear.confidence * 0.9, method="linear_fallback")

        values = self._smooth(linear.values, points, target_time, target_altitude, keep=0.9)
        return linear._replace(
            values=values,
            confidence=min(1.0, linear.confidence * 1.1),
            method="cubic",
            points_used=len(points)
        )

    def _spline(
        self,
        points: Sequence[TemporalDataPoint],
        target_time: datetime,
        target_altitude: float
    ) -> _Estimate:
        cubic = self._cubic(points, target_time, target_altitude)
        if len(points) < 6:
            method = "cubic_fallback" if cubic.method == "cubic" else cubic.method
            return cubic._replace(confidence=cubic.confidence * 0.95, method=method)

        values = self._smooth(cubic.values, points, target_time, target_altitude, keep=0.95)
        return cubic._replace(
            values=values,
            confidence=min(1.0, cubic.confidence * 1.05),
            method="spline"
        )

    @staticmethod
    def _smooth(
        values: Dict[str, float],
        points: Sequence[TemporalDataPoint],
        target_time: datetime,
        target_altitude: float,
        keep: float
    ) -> Dict[str, float]:
        """Blend each scalar toward a distance-weighted mean of all points"""
        weights = [
            1.0 / (1.0 + abs(_seconds_between(p.timestamp, target_time)) / 3600)
            * 1.0 / (1.0 + abs(p.altitude - target_altitude) / 1000)
            for p in points
        ]

        smoothed = dict(values)
        for key, value in values.items():
            if key in CIRCULAR_FIELDS or math.isnan(value):
                continue

            total = 0.0
            weight_sum = 0.0
            for point, weight in zip(points, weights):
                sample = point.values.get(key)
                if sample is None or math.isnan(sample):
                    continue
                total += sample * weight
                weight_sum += weight

            if weight_sum > 0:
                smoothed[key] = keep * value + (1 - keep) * (total / weight_sum)

        return smoothed


def _seconds_between(later: datetime, earlier: datetime) -> float:
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
