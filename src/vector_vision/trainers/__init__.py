from vector_vision.trainers.pets import PetOrderer, PetOrdererParams

__all__ = ["PetOrderer", "PetOrdererParams"]
