"""Data-access configuration discovery (MyBatis session factories and mapper scans)."""

from .aggregator import AggregatedConfig, ConfigAggregator
from .matcher import MapperLocationMatcher

__all__ = ["AggregatedConfig", "ConfigAggregator", "MapperLocationMatcher"]
