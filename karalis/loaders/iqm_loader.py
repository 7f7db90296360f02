# karalis/loaders/iqm_loader.py
"""IQM v2 mesh loader.

Reads meshes, vertex arrays, triangles and joints of an Inter-Quake Model
into a Model with a Skeleton. Animations are read separately by
karalis.loaders.iqm_animation.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from karalis import log
from karalis.errors import InvalidParameterError, MalformedInputError, UnsupportedFormatError
from karalis.geombase import Transform
from karalis.loaders.iqm_format import (
    FORMAT_DTYPES,
    IQM_BLENDINDEXES,
    IQM_BLENDWEIGHTS,
    IQM_COLOR,
    IQM_NORMAL,
    IQM_POSITION,
    IQM_TANGENT,
    IQM_TEXCOORD,
    IQM_UBYTE,
    MESH_STRUCT,
    VERTEXARRAY_STRUCT,
    BinaryView,
    IQMHeader,
    IQMMesh,
    IQMVertexArray,
    read_header,
    read_joints,
    read_string,
    read_text,
)
from karalis.mesh import Material, Mesh, Model
from karalis.skeleton import Bone, Skeleton

# Components read per vertex for each known array type
_COMPONENTS = {
    IQM_POSITION: 3,
    IQM_TEXCOORD: 2,
    IQM_NORMAL: 3,
    IQM_TANGENT: 4,
    IQM_BLENDINDEXES: 4,
    IQM_BLENDWEIGHTS: 4,
    IQM_COLOR: 4,
}

_TYPE_NAMES = {
    IQM_POSITION: "position",
    IQM_TEXCOORD: "texcoord",
    IQM_NORMAL: "normal",
    IQM_TANGENT: "tangent",
    IQM_BLENDINDEXES: "blendindexes",
    IQM_BLENDWEIGHTS: "blendweights",
    IQM_COLOR: "color",
}


def _read_vertex_array(view: BinaryView, va: IQMVertexArray, num_vertexes: int) -> Optional[np.ndarray]:
    """
    Read one vertex array as (num_vertexes, components), converted for its semantic.

    Returns None (with a warning) when the array cannot be used.
    """
    components = _COMPONENTS[va.type]
    type_name = _TYPE_NAMES[va.type]

    dtype = FORMAT_DTYPES.get(va.format)
    if dtype is None:
        log.warn(f"[IqmLoader] Skipping {type_name} array with unknown format {va.format}")
        return None
    if va.size < components:
        log.warn(f"[IqmLoader] Skipping {type_name} array with {va.size} components (need {components})")
        return None

    raw = view.array(dtype, va.offset, num_vertexes * va.size, f"{type_name} array")
    raw = raw.reshape(num_vertexes, va.size)[:, :components]

    if va.type == IQM_BLENDINDEXES:
        if raw.size and raw.max() > 255:
            log.warn(f"[IqmLoader] Blend index {int(raw.max())} exceeds 255 and wraps to another joint")
        return raw.astype(np.uint8)
    if va.type == IQM_BLENDWEIGHTS:
        if va.format == IQM_UBYTE:
            return raw.astype(np.float32) / 255.0
        return raw.astype(np.float32)
    if va.type == IQM_COLOR:
        if va.format == IQM_UBYTE:
            return raw.astype(np.uint8)
        return raw.astype(np.float32)
    return raw.astype(np.float32)


def _read_vertex_arrays(view: BinaryView, header: IQMHeader) -> Dict[int, np.ndarray]:
    rows = view.unpack_array(VERTEXARRAY_STRUCT, header.ofs_vertexarrays, header.num_vertexarrays, "vertex arrays")
    arrays = {}
    for row in rows:
        va = IQMVertexArray(*row)
        if va.type not in _COMPONENTS:
            log.debug(f"[IqmLoader] Ignoring vertex array of type {va.type}")
            continue
        data = _read_vertex_array(view, va, header.num_vertexes)
        if data is not None:
            arrays[va.type] = data
    return arrays


def _read_triangles(view: BinaryView, header: IQMHeader, m: IQMMesh) -> np.ndarray:
    """Mesh triangles re-homed to the mesh's first vertex, winding reversed."""
    if m.first_triangle + m.num_triangles > header.num_triangles:
        raise MalformedInputError(
            f"Mesh triangles [{m.first_triangle}, {m.first_triangle + m.num_triangles}) "
            f"exceed triangle count {header.num_triangles}"
        )
    tris = view.array("<u4", header.ofs_triangles + m.first_triangle * 12, m.num_triangles * 3, "triangles")
    tris = tris.astype(np.int64).reshape(-1, 3) - m.first_vertex
    if tris.size and (tris.min() < 0 or tris.max() >= m.num_vertexes):
        raise MalformedInputError("Triangle references a vertex outside its mesh")
    return tris[:, ::-1].astype(np.uint32).reshape(-1)


def _build_mesh(
    view: BinaryView,
    header: IQMHeader,
    text: bytes,
    m: IQMMesh,
    arrays: Dict[int, np.ndarray],
) -> Mesh:
    if m.first_vertex + m.num_vertexes > header.num_vertexes:
        raise MalformedInputError(
            f"Mesh vertices [{m.first_vertex}, {m.first_vertex + m.num_vertexes}) "
            f"exceed vertex count {header.num_vertexes}"
        )
    span = slice(m.first_vertex, m.first_vertex + m.num_vertexes)

    def part(array_type: int) -> Optional[np.ndarray]:
        data = arrays.get(array_type)
        return data[span].copy() if data is not None else None

    positions = part(IQM_POSITION)
    mesh = Mesh(
        name=read_string(text, m.name),
        vertices=positions if positions is not None else np.zeros((m.num_vertexes, 3), dtype=np.float32),
        normals=part(IQM_NORMAL),
        texcoords=part(IQM_TEXCOORD),
        indices=_read_triangles(view, header, m),
    )
    mesh.tangents = part(IQM_TANGENT)
    mesh.colors = part(IQM_COLOR)
    mesh.bone_ids = part(IQM_BLENDINDEXES)
    mesh.bone_weights = part(IQM_BLENDWEIGHTS)
    mesh.init_animation_buffers()
    return mesh


def _build_skeleton(view: BinaryView, header: IQMHeader, text: bytes) -> Optional[Skeleton]:
    if header.num_joints == 0:
        return None
    joints = read_joints(view, header)
    bones = [Bone(read_string(text, j.name), i, j.parent) for i, j in enumerate(joints)]
    local_pose = [Transform.from_channels(j.channels, normalize=False) for j in joints]
    return Skeleton.from_local_pose(bones, local_pose)


def load_iqm(data: bytes, name: str = "") -> Model:
    """
    Load meshes and skeleton from an IQM v2 buffer.

    A buffer that is not IQM v2 gives an empty Model and a warning.

    Args:
        data: File contents
        name: Model name

    Raises:
        InvalidParameterError: data is None or empty
        MalformedInputError: a section lies outside the buffer
    """
    if data is None or len(data) == 0:
        raise InvalidParameterError("IQM buffer is empty")

    view = BinaryView(data)
    try:
        header = read_header(view)
    except UnsupportedFormatError as e:
        log.warn(f"[IqmLoader] '{name}': {e}")
        return Model(name)

    text = read_text(view, header)
    arrays = _read_vertex_arrays(view, header)
    mesh_rows = view.unpack_array(MESH_STRUCT, header.ofs_meshes, header.num_meshes, "meshes")

    model = Model(name)
    for i, row in enumerate(mesh_rows):
        m = IQMMesh(*row)
        mesh = _build_mesh(view, header, text, m, arrays)
        model.add_mesh(mesh, i)
        model.materials.append(Material(name=read_string(text, m.material)))

    model.skeleton = _build_skeleton(view, header, text)

    log.debug(
        f"[IqmLoader] '{name}': {model.mesh_count} meshes, "
        f"{model.get_total_triangle_count()} triangles, {model.bone_count} joints"
    )
    return model
