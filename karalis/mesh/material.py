"""Material record read from MTL libraries and IQM mesh descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Optional

import numpy as np


def _color(r: float = 0.0, g: float = 0.0, b: float = 0.0) -> np.ndarray:
    return np.array([r, g, b], dtype=np.float32)


# Texture slot attribute -> MTL directive that fills it
TEXTURE_SLOTS = {
    "ambient_texname": "map_Ka",
    "diffuse_texname": "map_Kd",
    "specular_texname": "map_Ks",
    "specular_highlight_texname": "map_Ns",
    "bump_texname": "map_bump",
    "alpha_texname": "map_d",
    "displacement_texname": "disp",
}


@dataclass
class Material:
    """
    Surface description of a mesh.

    Colors are RGB float arrays. dissolve is opacity (1 = opaque); an MTL
    ``Tr`` value is stored here as ``1 - Tr``. Texture fields hold the path
    strings exactly as written in the library; loading them is up to the
    renderer.
    """

    name: str = ""
    ambient: np.ndarray = field(default_factory=_color)
    diffuse: np.ndarray = field(default_factory=_color)
    specular: np.ndarray = field(default_factory=_color)
    transmittance: np.ndarray = field(default_factory=_color)
    emission: np.ndarray = field(default_factory=_color)
    ior: float = 1.0
    shininess: float = 1.0
    dissolve: float = 1.0
    illum: int = 0

    ambient_texname: Optional[str] = None
    diffuse_texname: Optional[str] = None
    specular_texname: Optional[str] = None
    specular_highlight_texname: Optional[str] = None
    bump_texname: Optional[str] = None
    alpha_texname: Optional[str] = None
    displacement_texname: Optional[str] = None

    def texture_paths(self) -> Dict[str, str]:
        """Set texture slots as {attribute name: path}."""
        result = {}
        for slot in TEXTURE_SLOTS:
            path = getattr(self, slot)
            if path:
                result[slot] = path
        return result

    def copy(self) -> "Material":
        values = {}
        for f in fields(self):
            value = getattr(self, f.name)
            values[f.name] = value.copy() if isinstance(value, np.ndarray) else value
        return Material(**values)

    def __repr__(self) -> str:
        return f"<Material '{self.name}' textures={len(self.texture_paths())}>"
