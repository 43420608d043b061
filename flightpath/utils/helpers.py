"""
Helper utilities for balloon trajectory prediction
Common geo, unit and time functions used across modules
"""

import math
from datetime import datetime, timezone
from typing import Dict, Any, Tuple

import yaml


EARTH_RADIUS_M = 6371000.0
EARTH_RADIUS_KM = 6371.0
KELVIN_OFFSET = 273.15
PA_PER_HPA = 100.0


def load_yaml(file_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file

    Args:
        file_path: Path to YAML file

    Returns:
        Dictionary with configuration
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries

    Args:
        base: Default values
        override: Values that win over the defaults

    Returns:
        New merged dictionary
    """
    merged = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def format_duration(seconds: float) -> str:
    """
    Format duration in human readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "2h 15m 30s")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Unit conversions

def celsius_to_kelvin(celsius: float) -> float:
    return celsius + KELVIN_OFFSET


def kelvin_to_celsius(kelvin: float) -> float:
    return kelvin - KELVIN_OFFSET


def hpa_to_pa(hpa: float) -> float:
    return hpa * PA_PER_HPA


def pa_to_hpa(pa: float) -> float:
    return pa / PA_PER_HPA


# Angles

def normalize_angle(degrees: float) -> float:
    """
    Wrap an angle into [0, 360)

    Args:
        degrees: Any finite angle in degrees

    Returns:
        Equivalent angle in [0, 360)
    """
    wrapped = math.fmod(degrees, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    # fmod of tiny negatives can round back up to 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def wind_components(speed: float, direction: float) -> Tuple[float, float]:
    """
    Meteorological wind components

    Args:
        speed: Wind speed (m/s)
        direction: Direction the wind blows from (degrees, 0 = north, clockwise)

    Returns:
        Tuple of (u, v) in m/s
    """
    radians = math.radians(direction)
    return -speed * math.sin(radians), -speed * math.cos(radians)


# Great-circle geometry

def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points

    Args:
        lat1: Latitude of the first point (degrees)
        lng1: Longitude of the first point (degrees)
        lat2: Latitude of the second point (degrees)
        lng2: Longitude of the second point (degrees)

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def initial_bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial bearing from the first point to the second, in [0, 360)"""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lng = math.radians(lng2 - lng1)

    y = math.sin(delta_lng) * math.cos(lat2_rad)
    x = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lng))

    return normalize_angle(math.degrees(math.atan2(y, x)))


def destination_point(lat: float, lng: float, bearing: float, distance_km: float) -> Tuple[float, float]:
    """
    Point reached by travelling along a great circle

    Args:
        lat: Start latitude (degrees)
        lng: Start longitude (degrees)
        bearing: Direction of travel (degrees, 0 = north)
        distance_km: Distance travelled in kilometres

    Returns:
        Tuple of (latitude, longitude) with longitude in [-180, 180)
    """
    angular = distance_km / EARTH_RADIUS_KM
    bearing_rad = math.radians(bearing)
    lat1 = math.radians(lat)
    lng1 = math.radians(lng)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular) +
        math.cos(lat1) * math.sin(angular) * math.cos(bearing_rad)
    )
    lng2 = lng1 + math.atan2(
        math.sin(bearing_rad) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2)
    )

    lng_deg = (math.degrees(lng2) + 540.0) % 360.0 - 180.0
    return math.degrees(lat2), lng_deg


def round_coordinate_key(lat: float, lng: float, precision: int = 4) -> str:
    """
    Cache key for a coordinate pair

    Args:
        lat: Latitude
        lng: Longitude
        precision: Decimal places kept (4 places is roughly 11 m)

    Returns:
        Key of the form "lat,lng"
    """
    return f"{round(lat, precision):.{precision}f},{round(lng, precision):.{precision}f}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up"""
    return int(math.floor(value + 0.5))
