"""
Basic geometric types.

- Transform - translation, rotation quaternion and scale of a bone
"""

from .transform import Transform

__all__ = [
    'Transform',
]
