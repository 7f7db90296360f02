"""CPU skinning of model meshes to one animation frame.

Every influence moves a vertex from the bind pose into the frame pose:

    v' = (R_out * R_bind^-1)((v - t_bind) * s_out) + t_out

and the results of up to four influences are summed by weight. Normals are
only rotated.
"""

from __future__ import annotations

from typing import List

import numpy as np
from scipy.spatial.transform import Rotation

from karalis import log
from karalis.animation.clip import ModelAnimation
from karalis.geombase import Transform
from karalis.mesh import Mesh, Model


def is_valid_animation(model: Model, animation: ModelAnimation) -> bool:
    """True if animation targets the model's skeleton: same bone count, same parents."""
    skeleton = model.skeleton
    if skeleton is None or skeleton.get_bone_count() != animation.bone_count:
        return False
    for bone, anim_bone in zip(skeleton.bones, animation.bones):
        if bone.parent_index != anim_bone.parent_index:
            return False
    return True


def _rotations(transforms: List[Transform]) -> Rotation:
    quats = np.array([t.rotation for t in transforms], dtype=np.float64)
    # Rotation rejects zero-norm quaternions; treat them as identity
    zero = np.linalg.norm(quats, axis=1) == 0.0
    quats[zero] = (0.0, 0.0, 0.0, 1.0)
    return Rotation.from_quat(quats)


def _skin_mesh(
    mesh: Mesh,
    bind_t: np.ndarray,
    out_t: np.ndarray,
    out_s: np.ndarray,
    delta: np.ndarray,
) -> None:
    bone_count = len(bind_t)
    vertices = mesh.vertices.astype(np.float64)
    normals = mesh.normals.astype(np.float64) if mesh.normals is not None else None

    anim_vertices = np.zeros_like(vertices)
    anim_normals = np.zeros_like(normals) if normals is not None else None
    total_weight = np.zeros(len(vertices))

    for k in range(mesh.bone_ids.shape[1]):
        ids = mesh.bone_ids[:, k].astype(np.int64)
        weights = mesh.bone_weights[:, k].astype(np.float64)
        used = (weights != 0.0) & (ids < bone_count)
        if not np.any(used):
            continue

        b = ids[used]
        w = weights[used][:, None]
        moved = (vertices[used] - bind_t[b]) * out_s[b]
        moved = np.einsum("nij,nj->ni", delta[b], moved) + out_t[b]
        anim_vertices[used] += moved * w
        if normals is not None:
            anim_normals[used] += np.einsum("nij,nj->ni", delta[b], normals[used]) * w
        total_weight[used] += weights[used]

    # Vertices without influences keep their bind-pose position
    unbound = total_weight == 0.0
    anim_vertices[unbound] = vertices[unbound]
    if normals is not None:
        anim_normals[unbound] = normals[unbound]

    mesh.anim_vertices = anim_vertices.astype(np.float32)
    if normals is not None:
        mesh.anim_normals = anim_normals.astype(np.float32)


def update_model_animation(model: Model, animation: ModelAnimation, frame: int) -> bool:
    """
    Rewrite anim_vertices / anim_normals of every skinned mesh for frame.

    frame wraps around animation.frame_count.

    Returns:
        False if the animation does not fit the model (nothing is updated).
    """
    if animation.frame_count == 0 or not is_valid_animation(model, animation):
        log.warn(f"[Skinning] Animation '{animation.name}' does not match model '{model.name}'")
        return False

    bind_pose = model.skeleton.bind_pose
    frame_pose = animation.get_frame(frame)

    bind_t = np.array([t.translation for t in bind_pose], dtype=np.float64)
    out_t = np.array([t.translation for t in frame_pose], dtype=np.float64)
    out_s = np.array([t.scale for t in frame_pose], dtype=np.float64)
    delta = (_rotations(frame_pose) * _rotations(bind_pose).inv()).as_matrix()

    for mesh in model.meshes:
        if mesh.is_skinned and mesh.vertex_count > 0:
            _skin_mesh(mesh, bind_t, out_t, out_s, delta)
    return True
