from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "bayesab"
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Sampling
    DEFAULT_N_SAMPLES: int = 100_000
    MAX_N_SAMPLES: int = 2_000_000  # HTTP request cap

    # Estimation
    CREDIBLE_MASS: float = 0.95
    LIFT_EPSILON: float = 1e-12

    model_config = {"env_prefix": "BAYESAB_", "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
