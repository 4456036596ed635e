"""Engine configuration — storage endpoints, telemetry, and detector tuning knobs."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "CONFLICT_"}

    # Redis
    redis_url: str = "redis://redis:6379/0"
    redis_prefix: str = "conflict"

    # Telemetry
    environment: str = "development"
    otlp_endpoint: str = ""
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8200

    # Analysis windows
    default_timeframe_days: int = 90

    # Text scoring
    duplicate_similarity_threshold: float = 0.7
    keyword_limit: int = 10

    # Pattern detection
    geo_escalation_pair_ratio: float = 0.3
    geo_min_spreading_regions: int = 2
    temporal_spike_multiplier: float = 2.0
    temporal_min_flagged_days: int = 3
    actor_min_incidents: int = 5
    actor_min_regions: int = 3
    resource_min_incidents: int = 8
    severity_escalation_rate: float = 0.3

    # Escalation prediction
    escalation_indicator_limit: int = 10

    # Peace opportunities
    declining_min_severity_drop: float = 0.5
    declining_max_count_ratio: float = 0.8
    resolution_min_count: int = 3
    resolution_max_days: float = 30.0
    seasonal_candidate_ratio: float = 0.7
    seasonal_flag_ratio: float = 0.5
    reconciliation_quiet_days: int = 30
    optimal_window_days: int = 30

    # Anomalies and data quality
    anomaly_trailing_days: int = 7
    anomaly_multiplier: float = 2.0
    anomaly_expected_floor: float = 1.0
    quality_future_tolerance_seconds: int = 300

    # Notifications
    fallback_security_level: int = 5


settings = Settings()
