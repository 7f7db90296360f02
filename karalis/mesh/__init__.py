"""Mesh module - Mesh, Model, Material."""

from karalis.mesh.material import Material
from karalis.mesh.mesh import Mesh, Model

__all__ = ["Mesh", "Model", "Material"]
