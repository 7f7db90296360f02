"""Asset file loaders: OBJ/MTL text and IQM v2 binary."""

from karalis.loaders.mesh_spec import ImportSpec
from karalis.loaders.mtl_loader import load_mtl, parse_mtl
from karalis.loaders.obj_loader import Attrib, ObjParseResult, Shape, load_obj, parse_obj
from karalis.loaders.iqm_loader import load_iqm
from karalis.loaders.iqm_animation import load_iqm_animations

__all__ = [
    "ImportSpec",
    "Attrib",
    "Shape",
    "ObjParseResult",
    "parse_obj",
    "load_obj",
    "parse_mtl",
    "load_mtl",
    "load_iqm",
    "load_iqm_animations",
]
