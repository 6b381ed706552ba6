import importlib.resources

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment settings for the vector vision library (prefix ``VECTOR_VISION_``)."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_VISION_")

    parameters_file: str = Field(
        str(importlib.resources.files("vector_vision").joinpath("config", "parameters.toml")),
        description="Path to the TOML file with the default parameters located inside the package.",
    )
    log_level: str = Field("INFO", description="Logging level used by the command line scripts.")


config = Settings()
