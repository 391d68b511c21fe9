"""Configuration type definitions - single source of truth for all config classes."""


from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class FittingConfig:
    """Configuration for per-segment model fitting."""

    min_samples: int = 15
    """Minimum outcomes before a two-parameter logistic fit replaces the constant model."""


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Configuration for the mean-field time-to-completion simulation."""

    max_rounds: int = 100_000
    """Hard cap on simulated attempt rounds."""

    survival_epsilon: float = 1e-12
    """Stop once the probability of not having finished drops below this."""

    max_practice_per_round: int = 1000
    """Cap on virtual practice attempts committed between two rounds."""


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for refit orchestration."""

    deferred: bool = False
    """Run refits on a background worker instead of the recording thread."""

    precompute_recommendation: bool = True
    """Compute the recommendation before publishing a new advisor."""

    refit_interval: int = 1
    """Outcomes recorded on a segment between two refits."""


@dataclass(frozen=True, slots=True)
class TrackingConfig:
    """Configuration for outcome recording."""

    enabled: bool = True
    """Whether recorded outcomes are stored at all."""


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Configuration for the file-backed attempt and duration stores."""

    base_path: str = ".runcoach"
    """Directory holding attempts/, durations/ and logs/."""


@dataclass(frozen=True, slots=True)
class RuncoachConfig:
    """Root configuration for runcoach."""

    fitting: FittingConfig = field(default_factory=FittingConfig)
    """Model fitting configuration."""

    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    """Mean-field simulation configuration."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    """Refit orchestration configuration."""

    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    """Outcome tracking configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    """Storage configuration."""

    debug: bool = False
    """Enable debug logging by default."""
