"""
Epoch and batch trainer for ordering pet images.

Every epoch shuffles the image paths with a seeded random generator and cuts
them into batches (the last one may be smaller). Each batch gets a target
order from ``lightness_sorted_order`` (cats first, then by lightness) and is
trained for a single iteration. The loss of every batch is kept in
``loss_history`` and can be written to a CSV file.
"""

import csv
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field
from torch import Tensor
from tqdm import tqdm

from vector_vision.constants.literals import LOSS_HISTORY_HEADER
from vector_vision.data.images import ConverterParams, ImageVectorConverter
from vector_vision.data.targets import lightness_sorted_order
from vector_vision.models.orderer import OrdererParams, VectorImageOrderer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# -------------------------------------------------------------------------------------------
class PetOrdererParams(BaseModel):
    """Parameters of the pet batch trainer."""

    model_config = {"extra": "forbid"}

    batch_size: int = Field(default=5, ge=1, le=1024, description="Images per batch")
    epochs: int = Field(default=10, ge=1, le=10000, description="Number of passes over the images")
    seed: int = Field(default=42, description="Seed of the per-epoch shuffle")
    log_progress: bool = Field(default=True, description="Show a progress bar per epoch")
    loss_history_file: Optional[str] = Field(default=None, description="CSV file written after training")


# -------------------------------------------------------------------------------------------
class PetOrderer:
    """Trains a ``VectorImageOrderer`` over a directory of pet images.

    Args:
        image_paths: Images to train on.
        params: Trainer configuration.
        orderer_params: Orderer configuration. ``vector_size`` must match the converter.
        converter: Image converter. Defaults to one producing ``orderer_params.vector_size`` columns.

    Raises:
        ValueError: If there are no images or the converter and orderer sizes differ.
    """

    def __init__(
        self,
        image_paths: Sequence[PathLike],
        params: Optional[PetOrdererParams] = None,
        orderer_params: Optional[OrdererParams] = None,
        converter: Optional[ImageVectorConverter] = None,
    ) -> None:
        if len(image_paths) == 0:
            raise ValueError("PetOrderer needs at least one image")
        self.params = params or PetOrdererParams()
        self.image_paths: List[PathLike] = list(image_paths)
        self.orderer_params = orderer_params or OrdererParams()
        if converter is None:
            converter = ImageVectorConverter(ConverterParams(target_size=self.orderer_params.vector_size // 2))
        if converter.vector_size != self.orderer_params.vector_size:
            raise ValueError(
                f"Converter produces {converter.vector_size} columns but the orderer expects "
                f"{self.orderer_params.vector_size}"
            )  # fmt: skip

        self.converter = converter
        self.orderer = VectorImageOrderer(self.orderer_params, converter=converter.convert_image_to_vectors)
        self._random = random.Random(self.params.seed)
        self._features: Dict[str, Tensor] = {}
        self._loss_history: List[float] = []
        self.total_iterations = 0

    # -----------------------------------------------------------------------------------
    @property
    def loss_history(self) -> List[float]:
        return list(self._loss_history)

    def features(self, path: PathLike) -> Tensor:
        """Feature tensor of an image, converted once and cached."""
        key = str(path)
        if key not in self._features:
            self._features[key] = self.converter.convert_image_to_vectors(path)
        return self._features[key]

    def batches(self) -> List[List[PathLike]]:
        """Shuffle the images and split them into batches; the last batch may be smaller."""
        paths = list(self.image_paths)
        self._random.shuffle(paths)
        size = self.params.batch_size
        return [paths[start : start + size] for start in range(0, len(paths), size)]

    # -----------------------------------------------------------------------------------
    def train_batch(self, paths: Sequence[PathLike]) -> float:
        """Train one iteration on a batch ordered by ``lightness_sorted_order``."""
        features = [self.features(path) for path in paths]
        target_order = lightness_sorted_order(paths, features)
        loss, _ = self.orderer.train_ordering(
            features,
            target_order,
            iterations=1,
            progress_callback=lambda iteration, value: self._loss_history.append(value),
        )
        self.total_iterations += 1
        return loss

    def train(self, epochs: Optional[int] = None) -> float:
        """Run the epochs and return the loss of the last batch."""
        epochs = self.params.epochs if epochs is None else epochs
        logger.info(
            "Starting training with %d images, batch size %d, %d epochs",
            len(self.image_paths), self.params.batch_size, epochs,
        )  # fmt: skip

        final_loss = 0.0
        for epoch in range(epochs):
            batches = self.batches()
            progress = tqdm(
                batches,
                desc=f"Epoch {epoch + 1}/{epochs}",
                unit="batch",
                dynamic_ncols=True,
                disable=not self.params.log_progress,
            )
            for batch in progress:
                final_loss = self.train_batch(batch)
                progress.set_postfix(loss=f"{final_loss:.6f}")
            logger.info("Epoch %d/%d completed. Current loss: %.6f", epoch + 1, epochs, final_loss)

        if self.params.loss_history_file:
            self.save_loss_history(self.params.loss_history_file)
        self._log_summary(final_loss)
        return final_loss

    # -----------------------------------------------------------------------------------
    def save_loss_history(self, path: PathLike) -> None:
        """Write the loss history as ``Iteration,Loss`` rows."""
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(LOSS_HISTORY_HEADER)
            writer.writerows(enumerate(self._loss_history))
        logger.info("Saved loss history to %s", path)

    def _log_summary(self, final_loss: float) -> None:
        if not self._loss_history:
            return
        initial = self._loss_history[0]
        reduction = (initial - final_loss) / initial * 100 if initial else 0.0
        logger.info("Training completed. Initial loss: %.6f, final loss: %.6f", initial, final_loss)
        logger.info("Loss reduction: %.2f%% over %d iterations", reduction, self.total_iterations)
