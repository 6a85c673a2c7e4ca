from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DelayConfig(BaseSettings):
    """Simulated stage latencies, in time-units"""

    transcription: float = Field(default=2.0, ge=0.0)
    normalization: float = Field(default=1.5, ge=0.0)
    sentiment: float = Field(default=2.0, ge=0.0)
    time_unit: float = Field(
        default=1.0,
        gt=0.0,
        description="Wall-clock seconds per simulated time-unit on the event loop.",
    )

    @property
    def total(self) -> float:
        """Sum of the three stage delays."""
        return self.transcription + self.normalization + self.sentiment

    model_config = SettingsConfigDict(
        env_prefix="DELAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TranscriptionConfig(BaseSettings):
    """Fixed output of the transcription stub."""

    text: str = "hello world this is a test it cost five dollars and was great"
    confidence: float = Field(default=0.93, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPTION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class FailureConfig(BaseSettings):
    """Simulated stage failures. Empty means the stage succeeds."""

    transcription: Optional[str] = None
    normalization: Optional[str] = None
    sentiment: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="FAIL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "SpeechFlow"
    app_version: str = "1.0.0"
    debug: bool = False
    log_file: str = "logs/app.log"
    progress_log_file: str = "logs/progress.log"
    preview_length: int = Field(default=30, ge=1)
    progress_history: Optional[int] = Field(
        default=10_000,
        ge=1,
        description="Progress events a reporter keeps; None keeps all of them.",
    )

    # Stage latencies
    delays: DelayConfig = Field(default_factory=DelayConfig)

    # Stage A stub output
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)

    # Failure injection
    failures: FailureConfig = Field(default_factory=FailureConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
