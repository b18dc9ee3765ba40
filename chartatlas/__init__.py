"""
chartatlas - Pack mesh UV charts into texture atlases

Takes the charts of a parameterized mesh, packs their UV outlines into one
or more fixed-size atlases, and rewrites the mesh UVs so that texel grid
alignment survives the move.
"""

from chartatlas.client import AtlasPacker, PackResult

__version__ = "0.1.0"
__all__ = ["AtlasPacker", "PackResult"]
