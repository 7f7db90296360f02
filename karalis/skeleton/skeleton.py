"""Skeleton data and the pose composer shared by bind pose and animation frames."""

from __future__ import annotations

from typing import List, Optional, Sequence

from karalis import log
from karalis.geombase import Transform
from karalis.skeleton.bone import Bone


def compose_pose(bones: Sequence[Bone], local_transforms: Sequence[Transform]) -> List[Transform]:
    """
    Convert parent-relative transforms into skeleton-space transforms.

    Bones are visited in ascending index order, so a parent must be stored
    before its children. A bone whose parent index is not smaller than its
    own index (or is out of range) is left in local space.

    Args:
        bones: Bone hierarchy, bones[i].parent_index refers into the same list
        local_transforms: Local transform per bone, indexed like bones

    Returns:
        New list of composed transforms. Inputs are not modified.
    """
    composed: List[Transform] = []
    for index, (bone, local) in enumerate(zip(bones, local_transforms)):
        parent = bone.parent_index
        if parent < 0:
            composed.append(local.copy())
        elif parent < index:
            composed.append(composed[parent].compose(local))
        else:
            log.debug(f"[Skeleton] Bone {index} '{bone.name}' has parent {parent} stored after it, left uncomposed")
            composed.append(local.copy())
    return composed


class Skeleton:
    """
    Bone hierarchy with its bind pose.

    bind_pose holds one skeleton-space Transform per bone.
    """

    def __init__(self, bones: List[Bone] = None, bind_pose: List[Transform] = None):
        self.bones: List[Bone] = bones if bones is not None else []
        self.bind_pose: List[Transform] = bind_pose if bind_pose is not None else []

    @classmethod
    def from_local_pose(cls, bones: List[Bone], local_pose: Sequence[Transform]) -> "Skeleton":
        """Build a skeleton whose bind pose is composed from parent-relative transforms."""
        return cls(bones, compose_pose(bones, local_pose))

    def get_bone_count(self) -> int:
        return len(self.bones)

    def get_bone_index(self, name: str) -> int:
        """Index of the first bone with this name, -1 if there is none."""
        for bone in self.bones:
            if bone.name == name:
                return bone.index
        return -1

    def get_bone_by_name(self, name: str) -> Optional[Bone]:
        for bone in self.bones:
            if bone.name == name:
                return bone
        return None

    @property
    def root_bone_indices(self) -> List[int]:
        return [bone.index for bone in self.bones if bone.is_root]

    def get_children(self, bone: Bone) -> List[Bone]:
        return [b for b in self.bones if b.parent_index == bone.index]

    def __repr__(self) -> str:
        return f"<Skeleton bones={len(self.bones)}>"
