"""Bone class for skeletal animation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Bone:
    """
    Single joint in a skeleton hierarchy.

    Attributes:
        name: Human-readable bone name (e.g., "LeftArm", "Spine")
        index: Index in skeleton bone array
        parent_index: Index of parent bone (-1 for root bones)
    """

    name: str
    index: int
    parent_index: int = -1

    @property
    def is_root(self) -> bool:
        """True if this bone has no parent."""
        return self.parent_index < 0

    def serialize(self) -> dict:
        return {
            "name": self.name,
            "index": self.index,
            "parent_index": self.parent_index,
        }

    @classmethod
    def deserialize(cls, data: dict) -> "Bone":
        return cls(
            name=data["name"],
            index=data["index"],
            parent_index=data.get("parent_index", -1),
        )

    def __repr__(self) -> str:
        parent_str = f"parent={self.parent_index}" if self.parent_index >= 0 else "root"
        return f"<Bone {self.index}: '{self.name}' ({parent_str})>"
