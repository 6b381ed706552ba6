
import torch

from vector_vision.models.orderer import OrdererParams, VectorImageOrderer


def main():
    """Main demonstration function."""
    # Five synthetic "images", each a 4x8 feature tensor of increasing brightness
    generator = torch.Generator().manual_seed(0)
    images = [0.1 * i + 0.05 * torch.rand(4, 8, generator=generator, dtype=torch.float64) for i in range(5)]
    target_order = [4, 2, 0, 1, 3]

    orderer = VectorImageOrderer(OrdererParams(vector_size=8, learning_rate=0.01, seed=0))
    history = []
    loss, encodings = orderer.train_ordering(
        images, target_order, iterations=200, progress_callback=lambda i, value: history.append((i, value))
    )

    print("Vector Image Orderer Demonstration")
    print(f"Initial loss: {history[0][1]:.6f}")
    print(f"Final loss: {loss:.6f}")
    for position, index in enumerate(target_order):
        print(f"Position {position}: image {index} -> {encodings[index].squeeze(0)[:4].tolist()}")

if __name__ == "__main__":
    main()
