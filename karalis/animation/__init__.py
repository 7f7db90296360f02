"""Decoded skeletal animations and CPU skinning."""

from karalis.animation.clip import ModelAnimation
from karalis.animation.skinning import is_valid_animation, update_model_animation

__all__ = [
    "ModelAnimation",
    "is_valid_animation",
    "update_model_animation",
]
