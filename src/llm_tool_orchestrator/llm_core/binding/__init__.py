"""Re-export the model capability interface and the model binding."""

from .model import ChatModel, ProviderResT
from .binding import ModelBinding

__all__ = [
    "ChatModel",
    "ProviderResT",
    "ModelBinding",
]
