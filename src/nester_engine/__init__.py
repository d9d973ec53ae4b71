"""Nester-Engine: listing ingestion, AI content pipelines and agent branding for real-estate agents."""

from nester_engine.properties.platforms import detect_platform, is_valid_url

__all__ = [
    "detect_platform",
    "is_valid_url",
]
__version__ = "0.1.0"
