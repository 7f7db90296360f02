"""ModelAnimation - one decoded skeletal animation."""

from __future__ import annotations

from typing import List

from karalis.geombase import Transform
from karalis.skeleton import Bone


class ModelAnimation:
    """
    Skeleton-space bone poses for every frame of an animation.

    frame_poses[f][b] is the composed transform of bone b at frame f.
    """

    def __init__(
        self,
        name: str,
        bones: List[Bone],
        frame_poses: List[List[Transform]],
        framerate: float = 0.0,
        loop: bool = False,
    ):
        self.name = name
        self.bones = bones
        self.frame_poses = frame_poses
        self.framerate = framerate
        self.loop = loop

    @property
    def bone_count(self) -> int:
        return len(self.bones)

    @property
    def frame_count(self) -> int:
        return len(self.frame_poses)

    @property
    def duration(self) -> float:
        """Length in seconds, 0.0 if the file declares no framerate."""
        if self.framerate <= 0.0:
            return 0.0
        return self.frame_count / self.framerate

    def get_frame(self, frame: int) -> List[Transform]:
        """Pose of frame, wrapping around frame_count."""
        return self.frame_poses[frame % self.frame_count]

    def __repr__(self) -> str:
        return f"<ModelAnimation '{self.name}' bones={self.bone_count} frames={self.frame_count}>"
