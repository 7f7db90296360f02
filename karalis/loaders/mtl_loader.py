# karalis/loaders/mtl_loader.py
"""MTL material library parser.

The library is read as a fold over its lines: every line maps the current
MtlState to the next one. ``newmtl`` closes the open material (if any) and
starts a fresh one with default values; end of input closes the last one.
Property lines before the first ``newmtl`` have no material to land in and
are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from karalis import log
from karalis.errors import FileOperationError, ResourceNotFoundError
from karalis.loaders.obj_commands import parse_float, parse_int
from karalis.loaders.text_lines import TextBuffer, decode_text, iter_line_text
from karalis.mesh.material import Material

# (filename, working_dir) -> resource contents
Resolver = Callable[[str, str], Union[bytes, str, None]]

_COLOR_DIRECTIVES = {
    "Ka": "ambient",
    "Kd": "diffuse",
    "Ks": "specular",
    "Kt": "transmittance",
    "Ke": "emission",
}

_TEXTURE_DIRECTIVES = {
    "map_Ka": "ambient_texname",
    "map_Kd": "diffuse_texname",
    "map_Ks": "specular_texname",
    "map_Ns": "specular_highlight_texname",
    "map_bump": "bump_texname",
    "bump": "bump_texname",
    "map_d": "alpha_texname",
    "disp": "displacement_texname",
}


@dataclass(frozen=True)
class MtlState:
    """Accumulator threaded through the line fold."""
    current: Optional[Material] = None
    materials: Tuple[Material, ...] = ()
    name_index: Dict[str, int] = field(default_factory=dict)

    def flushed(self) -> "MtlState":
        """Append the open material to the output, if there is one."""
        if self.current is None:
            return self
        index = dict(self.name_index)
        index[self.current.name] = len(self.materials)
        return MtlState(None, self.materials + (self.current,), index)


def _rgb(args: List[str]) -> np.ndarray:
    values = [parse_float(a) for a in args[:3]]
    values.extend([0.0] * (3 - len(values)))
    return np.array(values, dtype=np.float32)


def _first_float(args: List[str]) -> float:
    return parse_float(args[0]) if args else 0.0


def _apply_property(material: Material, directive: str, args: List[str], rest: str) -> Optional[Material]:
    """Material updated by one property line, None if the directive is not a known one."""
    if directive in _COLOR_DIRECTIVES:
        return replace(material, **{_COLOR_DIRECTIVES[directive]: _rgb(args)})
    if directive in _TEXTURE_DIRECTIVES:
        return replace(material, **{_TEXTURE_DIRECTIVES[directive]: rest})
    if directive == "Ni":
        return replace(material, ior=_first_float(args))
    if directive == "Ns":
        return replace(material, shininess=_first_float(args))
    if directive == "illum":
        return replace(material, illum=parse_int(args[0]) if args else 0)
    if directive == "d":
        return replace(material, dissolve=_first_float(args))
    if directive == "Tr":
        # Tr is transparency, stored inverted as opacity
        return replace(material, dissolve=1.0 - _first_float(args))
    return None


def step(state: MtlState, line: str) -> MtlState:
    """Advance the fold by one line of the library."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return state

    parts = stripped.split()
    directive = parts[0]
    args = parts[1:]

    if directive == "newmtl":
        name = args[0] if args else ""
        return replace(state.flushed(), current=Material(name=name))

    if state.current is None:
        return state

    updated = _apply_property(state.current, directive, args, stripped[len(directive):].strip())
    if updated is None:
        return state
    return replace(state, current=updated)


def parse_mtl(text: TextBuffer) -> Tuple[List[Material], Dict[str, int]]:
    """
    Parse a material library.

    Args:
        text: Library contents (str or bytes)

    Returns:
        (materials in file order, {material name: index into materials})
    """
    if text is None or len(text) == 0:
        return [], {}
    final = reduce(step, iter_line_text(text), MtlState()).flushed()
    return list(final.materials), dict(final.name_index)


def load_mtl(filename: str, resolver: Resolver, working_dir: str = "") -> Tuple[List[Material], Dict[str, int]]:
    """
    Fetch a material library through resolver and parse it.

    Raises:
        FileOperationError: resolver does not provide the library
    """
    try:
        data = resolver(filename, working_dir)
    except ResourceNotFoundError as e:
        raise FileOperationError(f"Error reading material library '{filename}': {e}") from e
    if data is None:
        raise FileOperationError(f"Error reading material library '{filename}'")

    materials, name_index = parse_mtl(decode_text(data))
    log.debug(f"[MtlLoader] '{filename}': {len(materials)} materials")
    return materials, name_index
