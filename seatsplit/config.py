"""
Configuration management using Pydantic models loaded from YAML.
"""

import hmac
import math
import os
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidConfiguration
from .domain.models import (
    CarType,
    TripConfiguration,
    parse_start,
    resolve_timezone,
    timezone_name,
)


def _default_start() -> str:
    return pendulum.now().format("YYYY-MM-DDTHH:mm")


class TripSettings(BaseModel):
    """Trip settings as written in YAML; converted to a TripConfiguration."""
    rental_cost: float = 200
    daily_insurance: float = 25
    total_days: int = 3
    car_type: int = CarType.FIVE_SEATER.value
    start: str = Field(default_factory=_default_start)
    timezone: str = "UTC"
    payment_handle: str = ""

    @field_validator("rental_cost", "daily_insurance")
    @classmethod
    def validate_cost(cls, value: float) -> float:
        """Ensure monetary fields are finite and not negative."""
        if not math.isfinite(value):
            raise ValueError(f"Costs must be finite, got {value}")
        if value < 0:
            raise ValueError(f"Costs must not be negative, got {value}")
        return value

    @field_validator("total_days")
    @classmethod
    def validate_days(cls, value: int) -> int:
        """Ensure the trip lasts at least one day."""
        if value <= 0:
            raise ValueError("total_days must be greater than zero")
        return value

    @field_validator("car_type")
    @classmethod
    def validate_car_type(cls, value: int) -> int:
        """Only 5- and 7-seaters are supported."""
        supported = [car.value for car in CarType]
        if value not in supported:
            raise ValueError(f"car_type must be one of {supported}, got {value}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name or a fixed offset like '+02:00'."""
        try:
            resolve_timezone(value)
        except InvalidConfiguration as exc:
            raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def validate_start(self) -> "TripSettings":
        """Ensure the start timestamp can be parsed in the configured timezone."""
        parse_start(self.start, self.timezone)
        return self

    def to_configuration(self) -> TripConfiguration:
        return TripConfiguration.create(
            rental_cost=self.rental_cost,
            daily_insurance_rate=self.daily_insurance,
            total_days=self.total_days,
            capacity=self.car_type,
            start=self.start,
            timezone=self.timezone,
            payment_handle=self.payment_handle,
        )

    @classmethod
    def from_configuration(cls, config: TripConfiguration) -> "TripSettings":
        # The offset is written out so fixed-offset starts keep their wall time.
        return cls(
            rental_cost=config.rental_cost,
            daily_insurance=config.daily_insurance_rate,
            total_days=config.total_days,
            car_type=config.capacity,
            start=config.start.format("YYYY-MM-DDTHH:mmZ"),
            timezone=timezone_name(config.start),
            payment_handle=config.payment_handle,
        )


class AISettings(BaseModel):
    """Receipt scanning / advice settings."""
    api_key_env: str = "GEMINI_API_KEY"
    model: str = "gemini-2.5-flash"
    timeout_seconds: float = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def get_api_key(self) -> Optional[str]:
        """Read the API key from the configured environment variable."""
        return os.environ.get(self.api_key_env) or None


class AppConfig(BaseModel):
    """Application configuration."""
    admin_password: str = "admin"
    state_file: str = "trip_state.yaml"
    currency: str = "USD"
    trip: TripSettings = Field(default_factory=TripSettings)
    drivers: List[str] = Field(default_factory=list)
    ai: AISettings = Field(default_factory=AISettings)

    @field_validator("drivers")
    @classmethod
    def validate_drivers(cls, value: List[str]) -> List[str]:
        """Ensure driver names are non-empty and unique (case-insensitive)."""
        seen: set[str] = set()
        cleaned: List[str] = []
        for name in value:
            stripped = name.strip()
            if not stripped:
                raise ValueError("Driver names must not be empty")
            key = stripped.lower()
            if key in seen:
                raise ValueError(f"Duplicate driver name detected: {stripped}")
            seen.add(key)
            cleaned.append(stripped)
        return cleaned

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.
        
        Args:
            config_path: Path to the YAML config file
            
        Returns:
            AppConfig instance
            
        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def is_authorized(self, password: Optional[str]) -> bool:
        """Shared-secret gate for administrative commands."""
        if password is None:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self.admin_password.encode("utf-8"))

    def resolve_state_path(self, config_path: Path) -> Path:
        """State file path; relative paths are resolved next to the config file."""
        state_path = Path(self.state_file).expanduser()
        if state_path.is_absolute():
            return state_path
        return config_path.parent / state_path


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"
    
    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"
    
    return config_path
