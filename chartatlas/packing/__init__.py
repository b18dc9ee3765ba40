"""
Atlas packing for chart-based parameterizations.

Pipeline: outline extraction -> container growth loop (driving a packing
oracle) -> UV rewriting -> integer-shift correction.
"""
from .allocator import Allocation, Assignment, ChartState, Container, allocate_atlas, compute_packing_scale
from .exceptions import PackingAttemptsExceeded, PackingError, PackingInvariantError
from .integer_shift import integer_shift
from .oracle import OracleResult, PackingOracle
from .outline import extract_outline, extract_outlines
from .params import AlgoParameters, CostFunction, PackingParameters
from .rasterized_packer import RasterizedOutlinePacker
from .rewriter import rewrite_uvs

__all__ = [
    'Allocation',
    'Assignment',
    'ChartState',
    'Container',
    'allocate_atlas',
    'compute_packing_scale',
    'PackingError',
    'PackingAttemptsExceeded',
    'PackingInvariantError',
    'integer_shift',
    'OracleResult',
    'PackingOracle',
    'extract_outline',
    'extract_outlines',
    'AlgoParameters',
    'CostFunction',
    'PackingParameters',
    'RasterizedOutlinePacker',
    'rewrite_uvs',
]
