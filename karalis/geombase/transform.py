"""Transform - translation, rotation and scale of a single bone.

Composition formula used by the skeleton pose composer:
    parent.compose(local):
        translation = qrot(parent.rotation, local.translation) + parent.translation
        rotation    = qmul(parent.rotation, local.rotation)
        scale       = local.scale * parent.scale  # element-wise

Parent scale does not affect the child's translation; this is the rule IQM
exporters author against.
"""

import numpy
from karalis.util import qmul, qrot, qnormalize


class Transform:
    """Translation vector, rotation quaternion [x, y, z, w] and per-axis scale."""

    __slots__ = ('translation', 'rotation', 'scale', '_mat')

    def __init__(
        self,
        translation: numpy.ndarray = None,
        rotation: numpy.ndarray = None,
        scale: numpy.ndarray = None
    ):
        if translation is None:
            translation = numpy.array([0.0, 0.0, 0.0])
        if rotation is None:
            rotation = numpy.array([0.0, 0.0, 0.0, 1.0])
        if scale is None:
            scale = numpy.array([1.0, 1.0, 1.0])
        self.translation = numpy.asarray(translation, dtype=numpy.float64)
        self.rotation = numpy.asarray(rotation, dtype=numpy.float64)
        self.scale = numpy.asarray(scale, dtype=numpy.float64)
        self._mat = None

    @staticmethod
    def identity() -> 'Transform':
        return Transform()

    @staticmethod
    def from_channels(values, normalize: bool = True) -> 'Transform':
        """
        Build a transform from ten channel values in IQM order:
        translate x/y/z, rotate x/y/z/w, scale x/y/z.

        The rotation is normalized unless normalize is False.
        """
        rotation = numpy.array(values[3:7], dtype=numpy.float64)
        return Transform(
            translation=numpy.array(values[0:3], dtype=numpy.float64),
            rotation=qnormalize(rotation) if normalize else rotation,
            scale=numpy.array(values[7:10], dtype=numpy.float64),
        )

    def copy(self) -> 'Transform':
        return Transform(
            translation=self.translation.copy(),
            rotation=self.rotation.copy(),
            scale=self.scale.copy()
        )

    def compose(self, local: 'Transform') -> 'Transform':
        """Return local expressed in the space this transform lives in."""
        return Transform(
            translation=qrot(self.rotation, local.translation) + self.translation,
            rotation=qmul(self.rotation, local.rotation),
            scale=local.scale * self.scale
        )

    def transform_point(self, point: numpy.ndarray) -> numpy.ndarray:
        return qrot(self.rotation, self.scale * point) + self.translation

    def rotation_matrix(self) -> numpy.ndarray:
        x, y, z, w = self.rotation
        return numpy.array([
            [1 - 2*(y**2 + z**2), 2*(x*y - z*w), 2*(x*z + y*w)],
            [2*(x*y + z*w), 1 - 2*(x**2 + z**2), 2*(y*z - x*w)],
            [2*(x*z - y*w), 2*(y*z + x*w), 1 - 2*(x**2 + y**2)]
        ])

    def as_matrix(self) -> numpy.ndarray:
        """4x4 TRS matrix: Translation * Rotation * Scale."""
        if self._mat is None:
            mat = numpy.eye(4)
            mat[:3, :3] = self.rotation_matrix() @ numpy.diag(self.scale)
            mat[:3, 3] = self.translation
            self._mat = mat
        return self._mat

    def allclose(self, other: 'Transform', atol: float = 1e-6) -> bool:
        return (
            numpy.allclose(self.translation, other.translation, atol=atol)
            and numpy.allclose(self.rotation, other.rotation, atol=atol)
            and numpy.allclose(self.scale, other.scale, atol=atol)
        )

    def __repr__(self):
        return f"Transform(translation={self.translation}, rotation={self.rotation}, scale={self.scale})"
