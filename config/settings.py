"""Examination Diagram Mapper configuration.

Pydantic BaseSettings; every field can be overridden with a MAPPER_
prefixed environment variable or a .env file.
"""

from pathlib import Path

from pydantic_settings import BaseSettings


class MapperSettings(BaseSettings):
    """Configuration for the examination-to-diagram mapping engine."""

    # ── Paths ──
    PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"
    COORDINATES_DIR: Path = DATA_DIR / "coordinates"

    # ── Diagram images ──
    IMAGE_BASE_PATH: str = "/medical-images"
    DEFAULT_SEX: str = "male"

    # ── Classifier scoring ──
    FRONT_BASE_SCORE: float = 1.0
    GENERAL_EXAM_BONUS: float = 0.5
    CONFIDENCE_FLOOR: float = 0.5
    CONFIDENCE_CAP: float = 0.9
    CONFIDENCE_DIVISOR: float = 10.0
    MAX_SECONDARY_DIAGRAMS: int = 2

    # ── Finding extraction ──
    MIN_SENTENCE_LENGTH: int = 5
    DESCRIPTION_MAX_LENGTH: int = 100

    # ── Legend / export ──
    LEGEND_MAX_LENGTH: int = 30
    LEGEND_MAX_ITEMS: int = 3

    # ── Hit testing (reference pixels) ──
    HIT_TEST_RADIUS_PX: float = 100.0

    # ── API Server ──
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8526

    # ── Prometheus Metrics ──
    METRICS_ENABLED: bool = True

    model_config = {"env_prefix": "MAPPER_", "env_file": ".env"}


settings = MapperSettings()
