"""
Serializers for 3D printing and modeling tools.
"""

from .artifact import ExportArtifact, ExportDirectory, write_atomic
from .obj import encode_obj, export_obj
from .stl import encode_stl, encode_stl_header, export_stl

__all__ = [
    'ExportArtifact',
    'ExportDirectory',
    'write_atomic',
    # STL (binary)
    'encode_stl',
    'encode_stl_header',
    'export_stl',
    # OBJ (ASCII)
    'encode_obj',
    'export_obj',
]
