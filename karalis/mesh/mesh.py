"""Engine-neutral mesh and model containers produced by the loaders."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from karalis.mesh.material import Material
from karalis.skeleton import Skeleton


class Mesh:
    """
    Flat vertex buffers of one sub-mesh.

    OBJ meshes are triangle soup: indices is None and every three
    consecutive vertices form a triangle. IQM meshes share vertices and
    carry a flat uint32 index list.

    Skinned meshes additionally carry bone_ids (N, 4) uint8 and
    bone_weights (N, 4) float32, plus anim_vertices / anim_normals that
    start as copies of the bind-pose buffers and are rewritten by
    karalis.animation.update_model_animation.
    """

    def __init__(
        self,
        name: str = "",
        vertices: np.ndarray = None,
        normals: Optional[np.ndarray] = None,
        texcoords: Optional[np.ndarray] = None,
        indices: Optional[np.ndarray] = None,
    ):
        self.name = name
        self.vertices = vertices if vertices is not None else np.zeros((0, 3), dtype=np.float32)
        self.normals = normals
        self.texcoords = texcoords
        self.indices = indices
        self.tangents: Optional[np.ndarray] = None
        self.colors: Optional[np.ndarray] = None
        self.bone_ids: Optional[np.ndarray] = None
        self.bone_weights: Optional[np.ndarray] = None
        self.anim_vertices: Optional[np.ndarray] = None
        self.anim_normals: Optional[np.ndarray] = None

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        if self.indices is not None:
            return len(self.indices) // 3
        return self.vertex_count // 3

    @property
    def is_skinned(self) -> bool:
        """True if this mesh has skinning data."""
        return self.bone_ids is not None and self.bone_weights is not None

    def triangles(self) -> np.ndarray:
        """Triangle corner indices as a (T, 3) array, for indexed and soup meshes alike."""
        if self.indices is not None:
            return self.indices.reshape(-1, 3)
        return np.arange(self.triangle_count * 3, dtype=np.uint32).reshape(-1, 3)

    def init_animation_buffers(self) -> None:
        """Seed anim_vertices / anim_normals from the bind-pose buffers."""
        self.anim_vertices = self.vertices.copy()
        self.anim_normals = self.normals.copy() if self.normals is not None else None

    def __repr__(self) -> str:
        return f"<Mesh '{self.name}' vertices={self.vertex_count} triangles={self.triangle_count}>"


class Model:
    """
    Meshes, materials and an optional skeleton read from one asset.

    mesh_material[i] is the index into materials used by meshes[i],
    or -1 when the mesh has no material assigned.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.meshes: List[Mesh] = []
        self.materials: List[Material] = []
        self.mesh_material: List[int] = []
        self.skeleton: Optional[Skeleton] = None

    def add_mesh(self, mesh: Mesh, material_index: int = -1) -> None:
        self.meshes.append(mesh)
        self.mesh_material.append(material_index)

    @property
    def mesh_count(self) -> int:
        return len(self.meshes)

    @property
    def material_count(self) -> int:
        return len(self.materials)

    @property
    def bone_count(self) -> int:
        return self.skeleton.get_bone_count() if self.skeleton is not None else 0

    def has_skeleton(self) -> bool:
        return self.skeleton is not None

    def get_mesh_by_name(self, name: str) -> Optional[Mesh]:
        for mesh in self.meshes:
            if mesh.name == name:
                return mesh
        return None

    def get_mesh_material(self, index: int) -> Optional[Material]:
        material_index = self.mesh_material[index]
        if 0 <= material_index < len(self.materials):
            return self.materials[material_index]
        return None

    def get_total_vertex_count(self) -> int:
        return sum(mesh.vertex_count for mesh in self.meshes)

    def get_total_triangle_count(self) -> int:
        return sum(mesh.triangle_count for mesh in self.meshes)

    def __repr__(self) -> str:
        skeleton_info = f" bones={self.bone_count}" if self.skeleton else ""
        return f"<Model '{self.name}' meshes={self.mesh_count} materials={self.material_count}{skeleton_info}>"
