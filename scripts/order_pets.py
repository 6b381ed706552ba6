"""
Pet Image Ordering

Trains a vector image orderer on a directory of cat and dog pictures. Each
batch is ordered cats first and then by average lightness, and the encodings
learn to follow that order. Uses TOML configuration files for parameter
management; command line options override the file.

Usage:
    python order_pets.py data/pets
    python order_pets.py data/pets --config experiments/pets.toml
    python order_pets.py data/pets --epochs 20 --batch-size 8 --plot loss.png
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

from vector_vision.data.images import ImageVectorConverter, find_images
from vector_vision.data.targets import lightness_sorted_order
from vector_vision.figures.encodings import EncodingSequenceFigure
from vector_vision.figures.loss_history import LossHistoryFigure
from vector_vision.parameters import Parameters, load_parameters
from vector_vision.settings import config
from vector_vision.trainers.pets import PetOrderer

logger = logging.getLogger("order_pets")


# -------------------------------------------------------------------------------------------
# Utilities
# -------------------------------------------------------------------------------------------


def apply_overrides(parameters: Parameters, **overrides: Optional[object]) -> Parameters:
    """Return parameters with the given trainer/orderer fields replaced when not ``None``."""
    trainer = {k: v for k, v in overrides.items() if v is not None and k in ("batch_size", "epochs")}
    orderer = {k: v for k, v in overrides.items() if v is not None and k in ("vector_size", "learning_rate")}
    if "loss_history_file" in overrides and overrides["loss_history_file"] is not None:
        trainer["loss_history_file"] = str(overrides["loss_history_file"])

    data = parameters.model_dump()
    data["trainer"].update(trainer)
    data["orderer"].update(orderer)
    if "vector_size" in orderer:
        data["converter"]["target_size"] = orderer["vector_size"] // 2
    return Parameters.model_validate(data)


# -------------------------------------------------------------------------------------------
# Main Experiment Function
# -------------------------------------------------------------------------------------------


def run_experiment(
    image_dir: str,
    config_file: Optional[str] = None,
    batch_size: Optional[int] = None,
    vector_size: Optional[int] = None,
    epochs: Optional[int] = None,
    learning_rate: Optional[float] = None,
    csv_file: Optional[str] = None,
    plot_file: Optional[str] = None,
    encodings_file: Optional[str] = None,
) -> float:
    """
    Train the pet orderer and write the requested outputs.

    Args:
        image_dir: Directory holding the pet images
        config_file: Path to TOML configuration file
        batch_size: Images per batch (overrides config)
        vector_size: Encoding length, images are resized to half of it (overrides config)
        epochs: Number of epochs (overrides config)
        learning_rate: Gradient descent step size (overrides config)
        csv_file: Loss history CSV output (overrides config)
        plot_file: Loss history plot output
        encodings_file: Heatmap of the encodings of the first batch, in target order

    Returns:
        Loss of the last trained batch.
    """
    logger.info("Loading configuration from: %s", config_file or config.parameters_file)
    parameters = apply_overrides(
        load_parameters(config_file),
        batch_size=batch_size,
        epochs=epochs,
        vector_size=vector_size,
        learning_rate=learning_rate,
        loss_history_file=csv_file,
    )

    images = find_images(Path(image_dir))
    logger.info("Found %d images in %s", len(images), image_dir)

    trainer = PetOrderer(
        images,
        params=parameters.trainer,
        orderer_params=parameters.orderer,
        converter=ImageVectorConverter(parameters.converter),
    )
    final_loss = trainer.train()

    if plot_file:
        figure = LossHistoryFigure(parameters.figure)
        figure.plot(trainer.loss_history)
        figure.save(plot_file)
        logger.info("Saved loss plot to %s", plot_file)

    if encodings_file:
        batch = images[: parameters.trainer.batch_size]
        features = [trainer.features(path) for path in batch]
        encodings = [trainer.orderer.encode_image(item) for item in features]
        figure = EncodingSequenceFigure()
        figure.plot(encodings, lightness_sorted_order(batch, features))
        figure.save(encodings_file)
        logger.info("Saved encodings plot to %s", encodings_file)

    return final_loss


# -------------------------------------------------------------------------------------------
# CLI Argument Parsing
# -------------------------------------------------------------------------------------------


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Train a vector image orderer on pet pictures",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("image_dir", type=str, help="Directory with the pet images")
    parser.add_argument("--config", "-c", type=str, help="Path to TOML configuration file")
    parser.add_argument("--batch-size", "-b", type=int, help="Images per batch")
    parser.add_argument("--vector-size", "-v", type=int, help="Encoding length (even)")
    parser.add_argument("--epochs", "-e", type=int, help="Number of epochs")
    parser.add_argument("--learning-rate", "-lr", type=float, help="Learning rate for gradient descent")
    parser.add_argument("--csv", type=str, default="loss_history.csv", help="Loss history CSV output")
    parser.add_argument("--plot", type=str, help="Loss history plot output (PNG)")
    parser.add_argument("--encodings", type=str, help="Encodings heatmap output (PNG)")

    return parser.parse_args()


# -------------------------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_arguments()
    try:
        run_experiment(
            image_dir=args.image_dir,
            config_file=args.config,
            batch_size=args.batch_size,
            vector_size=args.vector_size,
            epochs=args.epochs,
            learning_rate=args.learning_rate,
            csv_file=args.csv,
            plot_file=args.plot,
            encodings_file=args.encodings,
        )
    except Exception:
        logger.exception("Experiment failed")
        raise
