import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Proyecto
    PROJECT_NAME: str = "BSC Scorecard Engine"
    VERSION: str = "1.0.0"

    # Validación de pesos
    WEIGHT_TOLERANCE: float = 0.01
    PRIMARY_SINGLE_MIN: float = 50.0  # una perspectiva principal
    PRIMARY_DUAL_MIN: float = 70.0  # dos perspectivas principales
    CROSS_DEPARTMENT_TOLERANCE: float = 5.0  # puntos porcentuales

    # Mapa estratégico
    MAX_LANE_JUMP: int = 2

    # Cálculo de desempeño
    DEFAULT_THRESHOLD_RATIO: float = 0.8
    DEFAULT_MAX_RATIO: float = 1.2
    BONUS_CEILING: float = 120.0

    # Ranking
    TREND_EPSILON: float = 0.5

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().upper()
        raise ValueError(v)

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_prefix="BSC_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Configura el logging raíz con el nivel indicado o el de settings."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
