"""Configuration management for pawn-engine."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pawn_engine.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")
NOTIFICATION_SINKS = ("console", "jsonl", "kafka")
LOG_FORMATS = ("standard", "json")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3

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
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "pawnshop"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class SchedulerConfig:
    """Scheduler runtime settings."""

    job_timeout_seconds: float = 300.0
    page_size: int = 1000
    branch_id: int = 0  # 0 = all branches


@dataclass
class JobSettings:
    """Schedule and activation flag for a single job."""

    schedule: str
    enabled: bool = True


def _default_jobs() -> dict[str, JobSettings]:
    return {
        "process_overdue_loans": JobSettings("hourly"),
        "calculate_late_fees": JobSettings("every:6h"),
        # Simple-interest product: interest is fixed at origination
        "calculate_daily_interest": JobSettings("daily", enabled=False),
        "send_due_date_reminders": JobSettings("daily"),
        "send_overdue_notifications": JobSettings("daily"),
        "generate_daily_report": JobSettings("daily"),
    }


@dataclass
class JobsConfig:
    """Per-job schedule configuration."""

    jobs: dict[str, JobSettings] = field(default_factory=_default_jobs)

    def get(self, name: str) -> JobSettings:
        """Return settings for a job, raising if the job is unknown."""
        try:
            return self.jobs[name]
        except KeyError:
            raise ConfigurationError(f"No settings for job {name!r}") from None


@dataclass
class NotificationConfig:
    """Customer notification delivery configuration."""

    sink: str = "console"
    channel: str = "sms"
    outbox_dir: Path = field(default_factory=lambda: Path("output"))
    topic: str = "pawnshop.notifications"


@dataclass
class EngineConfig:
    """Main configuration for the pawn-engine worker."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    store: str = "memory"
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.store not in STORE_BACKENDS:
            raise ConfigurationError(f"Unknown store backend: {self.store}")
        if self.notifications.sink not in NOTIFICATION_SINKS:
            raise ConfigurationError(f"Unknown notification sink: {self.notifications.sink}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format: {self.log_format}")
        if self.scheduler.page_size <= 0:
            raise ConfigurationError("Page size must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=_env_int("POSTGRES_PORT", 5432),
            database=os.getenv("POSTGRES_DB", "pawnshop"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        scheduler = SchedulerConfig(
            job_timeout_seconds=_env_float("JOB_TIMEOUT_SECONDS", 300.0),
            page_size=_env_int("LOAN_PAGE_SIZE", 1000),
            branch_id=_env_int("BRANCH_ID", 0),
        )

        jobs = JobsConfig()
        for name, settings in jobs.jobs.items():
            prefix = f"JOB_{name.upper()}"
            settings.schedule = os.getenv(f"{prefix}_SCHEDULE", settings.schedule)
            enabled = os.getenv(f"{prefix}_ENABLED")
            if enabled is not None:
                settings.enabled = enabled.lower() == "true"

        notifications = NotificationConfig(
            sink=os.getenv("NOTIFICATION_SINK", "console"),
            channel=os.getenv("NOTIFICATION_CHANNEL", "sms"),
            outbox_dir=Path(os.getenv("OUTBOX_DIR", "output")),
            topic=os.getenv("NOTIFICATION_TOPIC", "pawnshop.notifications"),
        )

        return cls(
            kafka=kafka,
            postgres=postgres,
            scheduler=scheduler,
            jobs=jobs,
            notifications=notifications,
            store=os.getenv("STORE_BACKEND", "memory"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            seed=_env_int("SEED", None),
        )


def _env_int(name: str, default: int | None) -> int | None:
    import os

    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    import os

    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
