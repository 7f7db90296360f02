"""
Karalis - readers for OBJ/MTL and IQM v2 3D assets.

Main modules:
- loaders - OBJ/MTL and IQM parsers
- mesh - Mesh, Model, Material records
- skeleton - bones, bind pose and the pose composer
- animation - decoded animations and CPU skinning
- resources - in-memory resource store
"""

from karalis import log  # noqa: F401
from karalis.errors import LoaderError

__version__ = '0.1.0'

__all__ = [
    'LoaderError',
]
