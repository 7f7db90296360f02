# karalis/loaders/obj_commands.py
"""Classify one OBJ line into a typed command record.

Numbers are read best-effort: a token is parsed by its longest numeric
prefix and falls back to zero, so a damaged line never aborts a load.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")


def parse_float(token: str) -> float:
    """Leading float of token, 0.0 if it does not start with one."""
    try:
        return float(token)
    except ValueError:
        match = _FLOAT_PREFIX.match(token)
        return float(match.group(0)) if match else 0.0


def parse_int(token: str) -> int:
    """Leading integer of token (atoi semantics), 0 if there is none."""
    match = _INT_PREFIX.match(token)
    return int(match.group(0)) if match else 0


def _floats(tokens: List[str], count: int) -> Tuple[float, ...]:
    values = [parse_float(t) for t in tokens[:count]]
    values.extend([0.0] * (count - len(values)))
    return tuple(values)


# ---------- COMMAND RECORDS ----------

@dataclass(frozen=True)
class FaceVertexRef:
    """Raw face corner exactly as written: 1-based or negative, vt/vn may be absent."""
    v: int
    vt: Optional[int] = None
    vn: Optional[int] = None


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Vertex:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Normal:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Texcoord:
    u: float
    v: float


@dataclass(frozen=True)
class Face:
    """
    Face corners and per-face vertex counts.

    With triangulation, refs holds 3 corners per fan triangle and
    num_verts is (3, 3, ...). Without it, refs is the polygon and
    num_verts holds its single corner count.
    """
    refs: Tuple[FaceVertexRef, ...]
    num_verts: Tuple[int, ...]

    @property
    def num_f(self) -> int:
        return len(self.refs)

    @property
    def num_f_num_verts(self) -> int:
        return len(self.num_verts)


@dataclass(frozen=True)
class ObjectName:
    name: str


@dataclass(frozen=True)
class GroupName:
    name: str


@dataclass(frozen=True)
class UseMaterial:
    name: str


@dataclass(frozen=True)
class MaterialLib:
    name: str


Command = Union[Empty, Vertex, Normal, Texcoord, Face, ObjectName, GroupName, UseMaterial, MaterialLib]

EMPTY = Empty()


# ---------- PARSING ----------

def parse_face_vertex(token: str) -> FaceVertexRef:
    """Parse one of v, v/vt, v//vn, v/vt/vn."""
    parts = token.split("/")
    v = parse_int(parts[0])
    vt = None
    vn = None
    if len(parts) > 1 and parts[1]:
        vt = parse_int(parts[1])
    if len(parts) > 2 and parts[2]:
        vn = parse_int(parts[2])
    return FaceVertexRef(v, vt, vn)


def triangulate_fan(corners: List[FaceVertexRef]) -> Tuple[Tuple[FaceVertexRef, ...], Tuple[int, ...]]:
    """Fan-triangulate a polygon around its first corner."""
    refs = []
    num_verts = []
    for k in range(2, len(corners)):
        refs.extend((corners[0], corners[k - 1], corners[k]))
        num_verts.append(3)
    return tuple(refs), tuple(num_verts)


def _rest(line: str, directive: str) -> str:
    return line[len(directive):].strip()


def parse_line(line: str, triangulate: bool = True) -> Command:
    """
    Parse a single OBJ line (without its terminator).

    Blank, whitespace-only and comment lines, as well as unknown
    directives, give Empty.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return EMPTY

    parts = stripped.split()
    cmd = parts[0]
    args = parts[1:]

    if cmd == "v":
        return Vertex(*_floats(args, 3))

    if cmd == "vn":
        return Normal(*_floats(args, 3))

    if cmd == "vt":
        return Texcoord(*_floats(args, 2))

    if cmd == "f":
        corners = [parse_face_vertex(token) for token in args]
        if triangulate:
            refs, num_verts = triangulate_fan(corners)
            return Face(refs, num_verts)
        return Face(tuple(corners), (len(corners),))

    if cmd == "usemtl":
        return UseMaterial(_rest(stripped, cmd))

    if cmd == "mtllib":
        return MaterialLib(_rest(stripped, cmd))

    if cmd == "g":
        return GroupName(_rest(stripped, cmd))

    if cmd == "o":
        return ObjectName(_rest(stripped, cmd))

    return EMPTY
