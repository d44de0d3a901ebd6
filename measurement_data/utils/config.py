# ========================
# measurement_data/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the measurement pipeline with environment support.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('true', '1', 'yes')


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


@dataclass(frozen=True)
class ValidationSettings:
    """Immutable thresholds used by the value validator."""

    min_allowed_year: int = 2000
    min_row_count: int = 1
    max_row_count: int = 10000
    allow_negative_execution_time: bool = False
    allow_negative_value: bool = False


class Config:
    """
    Configuration class for the measurement pipeline.
    Supports environment variables and default values.
    """

    BOOL_SETTINGS = ('ALLOW_NEGATIVE_EXECUTION_TIME', 'ALLOW_NEGATIVE_VALUE')
    INT_SETTINGS = ('MIN_ALLOWED_YEAR', 'MIN_ROW_COUNT', 'MAX_ROW_COUNT',
                    'DEFAULT_SAMPLE_ROWS', 'LAST_VALUES_LIMIT', 'API_PORT')

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # File validation thresholds
        self.MIN_ALLOWED_YEAR = int(os.getenv('MIN_ALLOWED_YEAR', '2000'))
        self.MIN_ROW_COUNT = int(os.getenv('MIN_ROW_COUNT', '1'))
        self.MAX_ROW_COUNT = int(os.getenv('MAX_ROW_COUNT', '10000'))
        self.ALLOW_NEGATIVE_EXECUTION_TIME = _env_bool('ALLOW_NEGATIVE_EXECUTION_TIME')
        self.ALLOW_NEGATIVE_VALUE = _env_bool('ALLOW_NEGATIVE_VALUE')

        # Storage
        self.DATABASE_PATH = os.getenv('MEASUREMENT_DB_PATH', 'data/measurements.db')
        self.LAST_VALUES_LIMIT = int(os.getenv('LAST_VALUES_LIMIT', '10'))

        # Sample data generation
        self.SAMPLE_DATA_DIR = os.getenv('SAMPLE_DATA_DIR', 'data/raw')
        self.DEFAULT_SAMPLE_ROWS = int(os.getenv('SAMPLE_ROWS', '1000'))

        # API server
        self.API_HOST = os.getenv('API_HOST', '0.0.0.0')
        self.API_PORT = int(os.getenv('API_PORT', '8000'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            name = key.upper()
            if not hasattr(self, name):
                continue
            if name in self.BOOL_SETTINGS:
                value = _as_bool(value)
            elif name in self.INT_SETTINGS:
                value = int(value)
            setattr(self, name, value)

    def validation_settings(self) -> ValidationSettings:
        """Snapshot of the validation thresholds as an immutable value."""
        return ValidationSettings(
            min_allowed_year=self.MIN_ALLOWED_YEAR,
            min_row_count=self.MIN_ROW_COUNT,
            max_row_count=self.MAX_ROW_COUNT,
            allow_negative_execution_time=self.ALLOW_NEGATIVE_EXECUTION_TIME,
            allow_negative_value=self.ALLOW_NEGATIVE_VALUE,
        )

    def ensure_directories(self) -> None:
        """Create the database and sample data directories if they don't exist."""
        Path(self.DATABASE_PATH).parent.mkdir(parents=True, exist_ok=True)
        Path(self.SAMPLE_DATA_DIR).mkdir(parents=True, exist_ok=True)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['min_allowed_year'] = 1 <= self.MIN_ALLOWED_YEAR <= 9999
        validations['row_count_range'] = 0 <= self.MIN_ROW_COUNT <= self.MAX_ROW_COUNT
        validations['sample_rows'] = self.DEFAULT_SAMPLE_ROWS > 0
        validations['last_values_limit'] = self.LAST_VALUES_LIMIT > 0
        validations['api_port'] = 1 <= self.API_PORT <= 65535

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if attr.isupper() and attr not in ('BOOL_SETTINGS', 'INT_SETTINGS')
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        """String representation of configuration."""
        lines = ["Configuration Settings:"]
        for key, value in sorted(self.to_dict().items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
