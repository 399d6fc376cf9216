"""Configuration management for the streaming pipeline."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class StreamConfig(BaseModel):
    """Pipeline configuration for the batch, circuit breaker and polling stages."""

    # Batch collector
    batch_size: int = Field(default=100, description="Pending records that trigger a flush")
    flush_interval: float = Field(default=5.0, description="Idle seconds before a timed flush")

    # Circuit breaker
    circuit_failure_threshold: int = Field(default=5, description="Consecutive failures before opening circuit")
    circuit_timeout: float = Field(default=60.0, description="Seconds the circuit stays open")

    # Polling source
    poll_interval: float = Field(default=10.0, description="Seconds between polls")
    records_per_poll: int = Field(default=10, description="Records produced by the synthetic fetch per poll")
    fetch_error_rate: float = Field(default=0.0, description="Probability of a simulated fetch failure")
    random_seed: Optional[int] = Field(default=None, description="Seed for the synthetic fetch")

    # Run control
    run_duration: float = Field(default=30.0, description="Seconds the demo pipeline runs")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")

    # Output configuration
    output_directory: str = Field(default="out", description="Output directory for written records")
    output_filename: str = Field(default="records.jsonl", description="JSON-lines output filename")

    @field_validator('batch_size', 'circuit_failure_threshold')
    @classmethod
    def validate_positive_int(cls, v: int, info) -> int:
        """Validate counts are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got: {v}")
        return v

    @field_validator('flush_interval', 'poll_interval', 'run_duration')
    @classmethod
    def validate_positive_seconds(cls, v: float, info) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got: {v}")
        return v

    @field_validator('circuit_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate circuit timeout is non-negative."""
        if v < 0:
            raise ValueError(f"circuit_timeout must be non-negative, got: {v}")
        return v

    @field_validator('records_per_poll')
    @classmethod
    def validate_records_per_poll(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"records_per_poll must be non-negative, got: {v}")
        return v

    @field_validator('fetch_error_rate')
    @classmethod
    def validate_error_rate(cls, v: float) -> float:
        """Validate error rate is a probability."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"fetch_error_rate must be between 0 and 1, got: {v}")
        return v

    @property
    def output_path(self) -> Path:
        """Get full output file path."""
        return Path(self.output_directory) / self.output_filename

    # Environment variable overrides
    @classmethod
    def env_overrides(cls) -> Dict[str, Any]:
        """
        Collect overrides from the STREAM_* environment variables that are set.

        Returns:
            Field name to converted value, only for variables present in the environment
        """
        env_mappings = {
            "STREAM_BATCH_SIZE": "batch_size",
            "STREAM_FLUSH_INTERVAL": "flush_interval",
            "STREAM_CIRCUIT_THRESHOLD": "circuit_failure_threshold",
            "STREAM_CIRCUIT_TIMEOUT": "circuit_timeout",
            "STREAM_POLL_INTERVAL": "poll_interval",
            "STREAM_RECORDS_PER_POLL": "records_per_poll",
            "STREAM_FETCH_ERROR_RATE": "fetch_error_rate",
            "STREAM_RANDOM_SEED": "random_seed",
            "STREAM_RUN_DURATION": "run_duration",
            "STREAM_LOG_LEVEL": "log_level",
            "STREAM_OUTPUT_DIRECTORY": "output_directory",
            "STREAM_OUTPUT_FILENAME": "output_filename",
        }

        overrides: Dict[str, Any] = {}
        for env_var, field_name in env_mappings.items():
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            # Convert to appropriate type based on field type
            annotation = cls.model_fields[field_name].annotation
            if annotation == int:
                overrides[field_name] = int(value)
            elif annotation == float:
                overrides[field_name] = float(value)
            elif annotation == Optional[int]:
                # Empty or "none" clears the seed
                overrides[field_name] = None if value.strip().lower() in ("", "none") else int(value)
            else:
                overrides[field_name] = value

        return overrides


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[StreamConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> StreamConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged StreamConfig instance

        Raises:
            ValueError: If configuration validation fails
        """
        config_dict = {}

        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        # Validate the YAML tier on its own so file errors are reported as such
        merged_dict = StreamConfig(**config_dict).model_dump()

        # ENV overrides YAML, even when it restates a default
        merged_dict.update(StreamConfig.env_overrides())

        # Apply CLI overrides (highest precedence)
        if cli_overrides:
            cli_overrides = {k: v for k, v in cli_overrides.items() if v is not None}
            merged_dict.update(cli_overrides)

        self._config = StreamConfig(**merged_dict)
        return self._config

    @property
    def config(self) -> StreamConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
