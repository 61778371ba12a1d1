"""Configuration management for lendflow."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lendflow.exceptions import ConfigurationError
from lendflow.models.enums import PayoutFrequency, RateType, RepaymentType


@dataclass
class EngineConfig:
    """Defaults and switches for the lifecycle engine."""

    default_rate_type: RateType = RateType.YEARLY
    default_repayment_type: RepaymentType = RepaymentType.INTEREST_ONLY
    default_payout_frequency: PayoutFrequency = PayoutFrequency.MONTHLY
    profit_window_months: int = 6
    upcoming_window_days: int = 30
    # When set, a forward move may advance at most one stage (guarded stages excepted).
    strict_stage_order: bool = False

    def __post_init__(self) -> None:
        if self.profit_window_months < 1:
            raise ConfigurationError("profit_window_months must be at least 1")
        if self.upcoming_window_days < 0:
            raise ConfigurationError("upcoming_window_days must not be negative")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for domain event publishing."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "dev.lendflow"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class LendFlowConfig:
    """Main configuration for lendflow."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LendFlowConfig":
        """Create config from environment variables."""
        import os

        try:
            engine = EngineConfig(
                default_rate_type=RateType(os.getenv("LENDFLOW_DEFAULT_RATE_TYPE", "yearly")),
                default_repayment_type=RepaymentType(
                    os.getenv("LENDFLOW_DEFAULT_REPAYMENT_TYPE", "Interest-Only")
                ),
                default_payout_frequency=PayoutFrequency(
                    os.getenv("LENDFLOW_DEFAULT_PAYOUT_FREQUENCY", "monthly")
                ),
                profit_window_months=int(os.getenv("LENDFLOW_PROFIT_WINDOW_MONTHS", "6")),
                upcoming_window_days=int(os.getenv("LENDFLOW_UPCOMING_WINDOW_DAYS", "30")),
                strict_stage_order=os.getenv("LENDFLOW_STRICT_STAGE_ORDER", "false").lower() == "true",
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid engine configuration: {exc}") from exc

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", "dev.lendflow"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("LENDFLOW_OUTPUT_DIR", "output")),
            pretty_json=os.getenv("LENDFLOW_PRETTY_JSON", "false").lower() == "true",
        )

        return cls(
            engine=engine,
            kafka=kafka,
            output=output,
            seed=int(os.getenv("LENDFLOW_SEED")) if os.getenv("LENDFLOW_SEED") else None,
            log_level=os.getenv("LENDFLOW_LOG_LEVEL", "INFO"),
        )
