from vector_vision.models.encoder import Encoder, OrderingTransform, encode
from vector_vision.models.orderer import OrdererParams, VectorImageOrderer

__all__ = ["Encoder", "OrderingTransform", "encode", "OrdererParams", "VectorImageOrderer"]
