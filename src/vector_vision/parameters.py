"""Parameter definitions loaded from TOML files."""

from pathlib import Path
from typing import Optional, Union

import tomli
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vector_vision.data.images import ConverterParams
from vector_vision.figures.loss_history import LossHistoryParams
from vector_vision.models.orderer import OrdererParams
from vector_vision.settings import config
from vector_vision.trainers.pets import PetOrdererParams


class Parameters(BaseModel):
    """All parameter tables of a pet ordering run."""

    model_config = ConfigDict(extra="forbid")
    orderer: OrdererParams = Field(default_factory=OrdererParams, description="Vector image orderer")
    converter: ConverterParams = Field(default_factory=ConverterParams, description="Image converter")
    trainer: PetOrdererParams = Field(default_factory=PetOrdererParams, description="Pet batch trainer")
    figure: LossHistoryParams = Field(default_factory=LossHistoryParams, description="Loss history figure")


def load_parameters(file_path: Optional[Union[str, Path]] = None) -> Parameters:
    """Load parameters from a TOML file, by default ``config.parameters_file``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid TOML or does not match ``Parameters``.
    """
    file_path = Path(config.parameters_file if file_path is None else file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            config_data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ValueError(f"Error parsing TOML file {file_path}: {e}") from e

    try:
        return Parameters.model_validate(config_data)
    except ValidationError as e:
        raise ValueError(f"Invalid parameters in {file_path}: {e}") from e


__all__ = ["Parameters", "load_parameters"]
