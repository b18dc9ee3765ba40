"""Mesh arena, charts and source texture bookkeeping."""
from .model import Chart, Mesh, build_charts
from .texture import TextureObject, TextureSize

__all__ = [
    'Chart',
    'Mesh',
    'build_charts',
    'TextureObject',
    'TextureSize',
]
