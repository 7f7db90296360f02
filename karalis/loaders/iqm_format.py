# karalis/loaders/iqm_format.py
"""IQM v2 file layout: constants, record structs and a bounds-checked reader.

All values are little-endian. Offsets in the header are absolute byte
positions in the file.
"""

from __future__ import annotations

import struct
from collections import namedtuple
from typing import Tuple

import numpy as np

from karalis.errors import MalformedInputError, UnsupportedFormatError

IQM_MAGIC = b"INTERQUAKEMODEL\x00"
IQM_VERSION = 2

# Vertex array types
IQM_POSITION = 0
IQM_TEXCOORD = 1
IQM_NORMAL = 2
IQM_TANGENT = 3
IQM_BLENDINDEXES = 4
IQM_BLENDWEIGHTS = 5
IQM_COLOR = 6
IQM_CUSTOM = 0x10

# Vertex array formats
IQM_BYTE = 0
IQM_UBYTE = 1
IQM_SHORT = 2
IQM_USHORT = 3
IQM_INT = 4
IQM_UINT = 5
IQM_HALF = 6
IQM_FLOAT = 7
IQM_DOUBLE = 8

FORMAT_DTYPES = {
    IQM_BYTE: np.dtype("<i1"),
    IQM_UBYTE: np.dtype("<u1"),
    IQM_SHORT: np.dtype("<i2"),
    IQM_USHORT: np.dtype("<u2"),
    IQM_INT: np.dtype("<i4"),
    IQM_UINT: np.dtype("<u4"),
    IQM_HALF: np.dtype("<f2"),
    IQM_FLOAT: np.dtype("<f4"),
    IQM_DOUBLE: np.dtype("<f8"),
}

# Animation flags
IQM_LOOP = 1 << 0

# Pose channels: translate xyz, rotate xyzw, scale xyz
NUM_CHANNELS = 10

IQMHeader = namedtuple("IQMHeader", [
    "magic", "version", "filesize", "flags",
    "num_text", "ofs_text",
    "num_meshes", "ofs_meshes",
    "num_vertexarrays", "num_vertexes", "ofs_vertexarrays",
    "num_triangles", "ofs_triangles", "ofs_adjacency",
    "num_joints", "ofs_joints",
    "num_poses", "ofs_poses",
    "num_anims", "ofs_anims",
    "num_frames", "num_framechannels", "ofs_frames", "ofs_bounds",
    "num_comment", "ofs_comment",
    "num_extensions", "ofs_extensions",
])
IQMMesh = namedtuple("IQMMesh", "name material first_vertex num_vertexes first_triangle num_triangles")
IQMVertexArray = namedtuple("IQMVertexArray", "type flags format size offset")
IQMJoint = namedtuple("IQMJoint", "name parent channels")
IQMPose = namedtuple("IQMPose", "parent mask channeloffset channelscale")
IQMAnim = namedtuple("IQMAnim", "name first_frame num_frames framerate flags")

HEADER_STRUCT = struct.Struct("<16s27I")
MESH_STRUCT = struct.Struct("<6I")
VERTEXARRAY_STRUCT = struct.Struct("<5I")
TRIANGLE_STRUCT = struct.Struct("<3I")
JOINT_STRUCT = struct.Struct("<Ii10f")
POSE_STRUCT = struct.Struct("<iI20f")
ANIM_STRUCT = struct.Struct("<3IfI")

HEADER_SIZE = HEADER_STRUCT.size


class BinaryView:
    """Read-only view over an IQM buffer; every read checks it stays inside."""

    def __init__(self, data):
        self._data = memoryview(bytes(data))

    def __len__(self) -> int:
        return len(self._data)

    def _check(self, offset: int, size: int, what: str) -> None:
        if offset < 0 or size < 0 or offset + size > len(self._data):
            raise MalformedInputError(
                f"{what}: {size} bytes at offset {offset} exceed buffer of {len(self._data)} bytes"
            )

    def slice(self, offset: int, size: int, what: str = "section") -> bytes:
        self._check(offset, size, what)
        return bytes(self._data[offset:offset + size])

    def unpack(self, fmt: struct.Struct, offset: int, what: str = "record") -> Tuple:
        self._check(offset, fmt.size, what)
        return fmt.unpack_from(self._data, offset)

    def unpack_array(self, fmt: struct.Struct, offset: int, count: int, what: str = "records") -> list:
        """count consecutive records of fmt starting at offset."""
        self._check(offset, fmt.size * count, what)
        return list(fmt.iter_unpack(self._data[offset:offset + fmt.size * count]))

    def array(self, dtype, offset: int, count: int, what: str = "array") -> np.ndarray:
        """Copy of count elements of dtype starting at offset."""
        dtype = np.dtype(dtype)
        self._check(offset, dtype.itemsize * count, what)
        if count == 0:
            return np.zeros(0, dtype=dtype)
        return np.frombuffer(self._data, dtype=dtype, count=count, offset=offset).copy()


def read_header(view: BinaryView) -> IQMHeader:
    """
    Read and validate the file header.

    Raises:
        UnsupportedFormatError: not an IQM file, or not version 2
        MalformedInputError: buffer ends inside the header
    """
    if len(view) < len(IQM_MAGIC) or view.slice(0, len(IQM_MAGIC)) != IQM_MAGIC:
        raise UnsupportedFormatError("Not an IQM file (bad magic)")
    header = IQMHeader(*view.unpack(HEADER_STRUCT, 0, "header"))
    if header.version != IQM_VERSION:
        raise UnsupportedFormatError(f"IQM version {header.version} is not supported (only {IQM_VERSION})")
    return header


def read_text(view: BinaryView, header: IQMHeader) -> bytes:
    if header.num_text == 0:
        return b""
    return view.slice(header.ofs_text, header.num_text, "text")


def read_string(text: bytes, offset: int) -> str:
    """NUL-terminated string at offset in the text blob, '' if offset is outside it."""
    if offset < 0 or offset >= len(text):
        return ""
    end = text.find(b"\x00", offset)
    if end < 0:
        end = len(text)
    return text[offset:end].decode("utf-8", errors="ignore")


def read_joints(view: BinaryView, header: IQMHeader) -> list:
    rows = view.unpack_array(JOINT_STRUCT, header.ofs_joints, header.num_joints, "joints")
    return [IQMJoint(row[0], row[1], row[2:]) for row in rows]


def read_poses(view: BinaryView, header: IQMHeader) -> list:
    rows = view.unpack_array(POSE_STRUCT, header.ofs_poses, header.num_poses, "poses")
    return [
        IQMPose(row[0], row[1], row[2:2 + NUM_CHANNELS], row[2 + NUM_CHANNELS:])
        for row in rows
    ]
