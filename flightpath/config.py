"""
Configuration loader for the prediction pipeline
Defaults mirror config/prediction.yaml so every component runs without a file
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

from flightpath.utils.helpers import deep_merge, load_yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "prediction.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'logging': {
        'level': 'INFO',
        'file': 'logs/prediction.log',
        'console': True,
    },
    'elevation_service': {
        'timeout': 10,
        'retry_attempts': 3,
        'retry_backoff_seconds': 0.5,
        'batch_concurrency': 5,
        'cache_enabled': True,
        'cache_max_size': 10000,
        'cache_ttl_seconds': 86400,
        'cache_precision': 4,
        'google_api_key': None,
        'google_max_batch_size': 512,
        'open_meteo_max_batch_size': 100,
    },
    'weather_service': {
        'base_url': 'https://api.open-meteo.com/v1',
        'timeout': 10,
        'retry_attempts': 3,
        'retry_backoff_seconds': 0.5,
        'cache_enabled': True,
        'cache_max_size': 1000,
        'cache_ttl_seconds': 3600,
        'cache_precision': 4,
        'provider_priority': ['forecast', 'gfs', 'ecmwf'],
        'target_altitudes': [1000, 5000, 10000, 15000, 20000, 25000, 30000],
    },
    'interpolation': {
        'temporal_tolerance_minutes': 180,
        'spatial_tolerance_meters': 1000,
        'exact_time_seconds': 60,
        'exact_altitude_meters': 10,
        'max_bracket_altitude_gap': 2000,
    },
    'forecast_window': {
        'lookback_minutes': 120,
        'lookahead_buffer_minutes': 60,
        'fallback_lookback_hours': 3,
        'fallback_lookahead_hours': 24,
    },
    'weather_quality': {
        'default_ensemble_members': 15,
        'default_ensemble_spread': 0.3,
        'default_recent_accuracy': 0.85,
        'default_seasonal_accuracy': 0.80,
    },
    'weather_selection': {
        'interpolation_step_minutes': 10,
        'temporal_tolerance_minutes': 180,
        'spatial_tolerance_meters': 2000,
        'quality_threshold': 0.3,
    },
    'terrain_analysis': {
        'slope_thresholds': {
            'flat': 5, 'gentle': 15, 'moderate': 25,
            'steep': 45, 'very_steep': 70, 'cliff': 90,
        },
        'difficulty_weights': {
            'slope': 0.4, 'roughness': 0.3, 'accessibility': 0.2, 'obstacles': 0.1,
        },
        'analysis_resolution': 10,
        'min_landing_site_size': 100,
        'obstacle_detection_threshold': 10,
    },
    'physics': {
        'ascent_time_step': 10,
        'descent_time_step': 5,
        'max_flight_time': 86400,
        'default_parachute_area': 1.0,
        'monte_carlo_samples': 200,
    },
    'terrain_integration': {
        'grid_max_points': 121,
        'elevation_timeout': 30,
        'complexity_factors': {
            'flat': 1.0, 'gentle': 0.95, 'moderate': 0.9,
            'mountainous': 0.85, 'extreme': 0.8,
        },
        'complexity_bands': [
            ['flat', 100, 0.2],
            ['gentle', 500, 0.4],
            ['moderate', 1000, 0.6],
            ['mountainous', 2000, 0.8],
        ],
        'max_landing_site_rating': 7,
        'suitable_site_rating': 5,
        'suitable_site_max_slope': 15,
    },
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load prediction configuration

    Args:
        path: YAML file to merge over the defaults. When omitted the bundled
            config/prediction.yaml is used if present.

    Returns:
        Complete configuration dictionary
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return copy.deepcopy(DEFAULT_CONFIG)

    return deep_merge(copy.deepcopy(DEFAULT_CONFIG), load_yaml(str(config_path)))


def get_section(config: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    """Return one named section, falling back to its defaults"""
    if config is None:
        return copy.deepcopy(DEFAULT_CONFIG[name])
    return deep_merge(DEFAULT_CONFIG.get(name, {}), config.get(name, {}))
