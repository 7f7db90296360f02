"""Skeleton module for skeletal animation support."""

from karalis.skeleton.bone import Bone
from karalis.skeleton.skeleton import Skeleton, compose_pose

__all__ = [
    "Bone",
    "Skeleton",
    "compose_pose",
]
