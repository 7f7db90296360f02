# karalis/loaders/obj_loader.py
"""Wavefront OBJ loader.

Parsing runs in two passes over the per-line commands: the first counts
records so every attribute array is allocated once, the second fills them
and resolves face references. Shapes are then derived from the o/g
boundaries, and load_obj() expands each shape into a triangle-soup Mesh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from karalis import log
from karalis.errors import FileOperationError, InvalidParameterError
from karalis.loaders.mesh_spec import ImportSpec
from karalis.loaders.mtl_loader import Resolver, load_mtl
from karalis.loaders.obj_commands import (
    Command,
    Face,
    GroupName,
    MaterialLib,
    Normal,
    ObjectName,
    Texcoord,
    UseMaterial,
    Vertex,
    parse_line,
)
from karalis.loaders.text_lines import TextBuffer, iter_line_text
from karalis.mesh import Material, Mesh, Model

# Resolved index of an absent vt/vn component or an unusable reference
MISSING_INDEX = -1

# Largest index that fits the int32 face table
MAX_INDEX = np.iinfo(np.int32).max

# Columns of Attrib.faces
FACE_V = 0
FACE_VT = 1
FACE_VN = 2


def fix_index(raw: Optional[int], count: int) -> int:
    """
    Resolve a raw OBJ reference against the number of elements read so far.

    Positive values are 1-based, negative values count back from the last
    element (-1 is the last one), zero maps to the first element. Values
    beyond the int32 range resolve to MISSING_INDEX.
    """
    if raw is None:
        return MISSING_INDEX
    if raw > 0:
        return raw - 1 if raw - 1 <= MAX_INDEX else MISSING_INDEX
    if raw == 0:
        return 0
    resolved = count + raw
    return resolved if resolved >= 0 else MISSING_INDEX


@dataclass
class Attrib:
    """Global attribute pools of one OBJ buffer."""
    vertices: np.ndarray    # (N, 3) float32
    normals: np.ndarray     # (N, 3) float32
    texcoords: np.ndarray   # (N, 2) float32
    faces: np.ndarray       # (M, 3) int32, columns v / vt / vn
    face_num_verts: np.ndarray  # (F,) int32, corners per face record
    material_ids: np.ndarray    # (F,) int32, -1 = unassigned

    @property
    def num_faces(self) -> int:
        return len(self.face_num_verts)


@dataclass(frozen=True)
class Shape:
    """Range of face records [face_offset, face_offset + length) under one o/g name."""
    name: Optional[str]
    face_offset: int
    length: int


@dataclass
class ObjParseResult:
    attrib: Attrib
    shapes: List[Shape]
    materials: List[Material] = field(default_factory=list)
    material_index: Dict[str, int] = field(default_factory=dict)


class _Counts:
    """Pass 1 tallies."""

    def __init__(self, commands: List[Command]):
        self.num_v = 0
        self.num_vn = 0
        self.num_vt = 0
        self.num_f = 0
        self.num_faces = 0
        self.mtllib: Optional[str] = None
        for command in commands:
            if isinstance(command, Vertex):
                self.num_v += 1
            elif isinstance(command, Normal):
                self.num_vn += 1
            elif isinstance(command, Texcoord):
                self.num_vt += 1
            elif isinstance(command, Face):
                self.num_f += command.num_f
                self.num_faces += command.num_f_num_verts
            elif isinstance(command, MaterialLib):
                self.mtllib = command.name


class _AttribAccumulator:
    """
    Pass 2 state: arrays sized from the counts, fill cursors and the
    material id that applies to the next faces.
    """

    def __init__(self, counts: _Counts, material_index: Dict[str, int]):
        self.material_index = material_index
        self.material_id = -1
        self.v_count = 0
        self.n_count = 0
        self.t_count = 0
        self.f_count = 0
        self.face_count = 0
        self.vertices = np.zeros((counts.num_v, 3), dtype=np.float32)
        self.normals = np.zeros((counts.num_vn, 3), dtype=np.float32)
        self.texcoords = np.zeros((counts.num_vt, 2), dtype=np.float32)
        self.faces = np.zeros((counts.num_f, 3), dtype=np.int32)
        self.face_num_verts = np.zeros(counts.num_faces, dtype=np.int32)
        self.material_ids = np.zeros(counts.num_faces, dtype=np.int32)

    def feed(self, command: Command) -> None:
        if isinstance(command, Vertex):
            self.vertices[self.v_count] = (command.x, command.y, command.z)
            self.v_count += 1
        elif isinstance(command, Normal):
            self.normals[self.n_count] = (command.x, command.y, command.z)
            self.n_count += 1
        elif isinstance(command, Texcoord):
            self.texcoords[self.t_count] = (command.u, command.v)
            self.t_count += 1
        elif isinstance(command, UseMaterial):
            self.material_id = self.material_index.get(command.name, -1)
        elif isinstance(command, Face):
            self._feed_face(command)

    def _feed_face(self, face: Face) -> None:
        for k, ref in enumerate(face.refs):
            self.faces[self.f_count + k] = (
                fix_index(ref.v, self.v_count),
                fix_index(ref.vt, self.t_count),
                fix_index(ref.vn, self.n_count),
            )
        end = self.face_count + face.num_f_num_verts
        self.face_num_verts[self.face_count:end] = face.num_verts
        self.material_ids[self.face_count:end] = self.material_id
        self.f_count += face.num_f
        self.face_count = end

    def attrib(self) -> Attrib:
        return Attrib(
            vertices=self.vertices,
            normals=self.normals,
            texcoords=self.texcoords,
            faces=self.faces,
            face_num_verts=self.face_num_verts,
            material_ids=self.material_ids,
        )


def derive_shapes(commands: List[Command]) -> List[Shape]:
    """
    Split the face records into named ranges at every o/g line.

    A boundary closes the pending range only if faces were read since the
    previous one; otherwise it just renames the pending range. The last
    range is emitted if it holds faces.
    """
    shapes = []
    pending_name: Optional[str] = None
    range_start = 0
    face_count = 0

    for command in commands:
        if isinstance(command, (ObjectName, GroupName)):
            if face_count > range_start:
                shapes.append(Shape(pending_name, range_start, face_count - range_start))
                range_start = face_count
            pending_name = command.name
        elif isinstance(command, Face):
            face_count += command.num_f_num_verts

    if face_count > range_start:
        shapes.append(Shape(pending_name, range_start, face_count - range_start))
    return shapes


def _load_materials(filename: str, resolver: Optional[Resolver], working_dir: str):
    if resolver is None:
        log.warn(f"[ObjLoader] No resource resolver to read material library '{filename}'")
        return [], {}
    try:
        return load_mtl(filename, resolver, working_dir)
    except FileOperationError as e:
        log.warn(f"[ObjLoader] Failed to parse material file '{filename}': {e}")
        return [], {}


def parse_obj(
    data: TextBuffer,
    resolver: Optional[Resolver] = None,
    working_dir: str = "",
    triangulate: bool = True,
) -> ObjParseResult:
    """
    Parse an OBJ buffer into attribute pools, shapes and materials.

    Args:
        data: OBJ text (str or bytes)
        resolver: Called as resolver(filename, working_dir) for the mtllib
        working_dir: Directory the OBJ was read from
        triangulate: Fan-triangulate polygons with more than 3 corners

    Raises:
        InvalidParameterError: data is None or empty
    """
    if data is None or len(data) == 0:
        raise InvalidParameterError("OBJ buffer is empty")

    commands = [parse_line(line, triangulate) for line in iter_line_text(data)]
    counts = _Counts(commands)

    materials: List[Material] = []
    material_index: Dict[str, int] = {}
    if counts.mtllib:
        materials, material_index = _load_materials(counts.mtllib, resolver, working_dir)

    accumulator = _AttribAccumulator(counts, material_index)
    for command in commands:
        accumulator.feed(command)

    return ObjParseResult(
        attrib=accumulator.attrib(),
        shapes=derive_shapes(commands),
        materials=materials,
        material_index=material_index,
    )


# ---------- MODEL BUILDING ----------

def _gather(pool: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """pool[indices] with zero rows where an index is missing or out of range."""
    out = np.zeros((len(indices), pool.shape[1]), dtype=np.float32)
    valid = (indices >= 0) & (indices < len(pool))
    out[valid] = pool[indices[valid]]
    return out


def _face_starts(attrib: Attrib) -> np.ndarray:
    """Row of attrib.faces where every face record starts, plus the end row."""
    return np.concatenate(([0], np.cumsum(attrib.face_num_verts)))


def _triangle_corners(attrib: Attrib, starts: np.ndarray, shape: Shape) -> np.ndarray:
    """Rows of attrib.faces forming the shape's triangles, fanning any polygon."""
    first = int(starts[shape.face_offset])
    last = int(starts[shape.face_offset + shape.length])
    num_verts = attrib.face_num_verts[shape.face_offset:shape.face_offset + shape.length]

    if np.all(num_verts == 3):
        return np.arange(first, last)

    corners = []
    for start, n in zip(starts[shape.face_offset:shape.face_offset + shape.length], num_verts):
        for k in range(2, int(n)):
            corners.extend((start, start + k - 1, start + k))
    return np.array(corners, dtype=np.int64)


def _build_mesh(attrib: Attrib, starts: np.ndarray, shape: Shape, spec: ImportSpec) -> Mesh:
    refs = attrib.faces[_triangle_corners(attrib, starts, shape)]

    mesh = Mesh(name=shape.name or "")
    mesh.vertices = spec.apply_to_vertices(_gather(attrib.vertices, refs[:, FACE_V]))
    if len(attrib.texcoords) > 0:
        mesh.texcoords = spec.apply_to_uvs(_gather(attrib.texcoords, refs[:, FACE_VT]))
    if len(attrib.normals) > 0:
        mesh.normals = _gather(attrib.normals, refs[:, FACE_VN])
    return mesh


def load_obj(
    data: TextBuffer,
    resolver: Optional[Resolver] = None,
    working_dir: str = "",
    spec: Optional[ImportSpec] = None,
    name: str = "",
) -> Model:
    """
    Load an OBJ buffer as a Model with one triangle-soup mesh per shape.

    The material of a mesh is the one active at its first face.
    """
    spec = spec or ImportSpec()
    result = parse_obj(data, resolver, working_dir, triangulate=spec.triangulate)
    attrib = result.attrib
    starts = _face_starts(attrib)

    model = Model(name)
    model.materials = result.materials
    for shape in result.shapes:
        material_id = int(attrib.material_ids[shape.face_offset]) if shape.length > 0 else -1
        model.add_mesh(_build_mesh(attrib, starts, shape, spec), material_id)

    log.debug(
        f"[ObjLoader] '{name}': {model.mesh_count} meshes, "
        f"{model.get_total_triangle_count()} triangles, {model.material_count} materials"
    )
    return model
