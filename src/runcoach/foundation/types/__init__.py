"""Shared type definitions."""

from runcoach.foundation.types.config import (
    FittingConfig,
    RuncoachConfig,
    ServiceConfig,
    SimulationConfig,
    StorageConfig,
    TrackingConfig,
)

__all__ = [
    "FittingConfig",
    "RuncoachConfig",
    "ServiceConfig",
    "SimulationConfig",
    "StorageConfig",
    "TrackingConfig",
]
