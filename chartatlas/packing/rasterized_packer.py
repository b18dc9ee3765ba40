"""
Rasterization-based outline packer.

Default packing oracle. Every outline is rasterized with Pillow once per
allowed rotation, grown by the gutter, and dropped onto a bottom horizon
(the first free row of each grid column). Charts that fit nowhere are left
unassigned; the caller decides whether to grow the container.

Grid layout:
    row 0 is the bottom of the container, columns run along +X.
    One grid cell covers `step` x `step` container units, where `step`
    keeps the longest grid side under `max_grid_dim`.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from PIL import Image, ImageDraw, ImageFilter

from chartatlas.geometry import Box2, Similarity2, perimeter, rotate_quarter_turns, signed_area
from chartatlas.packing.oracle import OracleResult
from chartatlas.packing.params import CostFunction, PackingParameters

logger = logging.getLogger(__name__)

# Columns a raster does not touch never constrain placement
_NO_CONSTRAINT = np.iinfo(np.int64).min // 2


@dataclass
class OutlineRaster:
    """Occupancy mask of one outline in one orientation."""
    quarter_turns: int
    mask: np.ndarray    # (h, w) bool
    origin: np.ndarray  # min corner of the rotated, scaled outline (container units)
    bottom: np.ndarray  # first occupied row per column
    top: np.ndarray     # one past the last occupied row per column
    columns: np.ndarray  # which columns are occupied at all

    @property
    def width(self) -> int:
        return self.mask.shape[1]

    @property
    def height(self) -> int:
        return self.mask.shape[0]


def rasterize_outline(outline: np.ndarray, quarter_turns: int, scale: float, step: int, pad: int) -> OutlineRaster:
    """
    Rasterize an outline into grid cells, dilated by `pad` cells on every side.
    """
    pts = rotate_quarter_turns(outline, quarter_turns) * scale
    origin = pts.min(axis=0)
    extent = pts.max(axis=0) - origin
    cells = (pts - origin) / step + pad

    w = int(math.ceil(extent[0] / step)) + 1 + 2 * pad
    h = int(math.ceil(extent[1] / step)) + 1 + 2 * pad

    img = Image.new('L', (w, h), 0)
    draw = ImageDraw.Draw(img)
    coords = [(float(x), float(y)) for x, y in cells]
    if len(coords) >= 3:
        draw.polygon(coords, fill=1, outline=1)
    elif len(coords) == 2:
        draw.line(coords, fill=1)
    else:
        draw.point(coords, fill=1)
    if pad > 0:
        img = img.filter(ImageFilter.MaxFilter(2 * pad + 1))

    mask = np.array(img, dtype=np.uint8) > 0
    columns = mask.any(axis=0)
    bottom = np.where(columns, mask.argmax(axis=0), h).astype(np.int64)
    top = np.where(columns, h - mask[::-1].argmax(axis=0), 0).astype(np.int64)
    return OutlineRaster(quarter_turns, mask, origin, bottom, top, columns)


class HorizonPacker:
    """Places rasters on a bottom horizon inside a fixed grid."""

    def __init__(self, width: int, height: int, cost_function: CostFunction = CostFunction.lowest_horizon):
        self.width = width
        self.height = height
        self.cost_function = cost_function
        self.horizon = np.zeros(width, dtype=np.int64)

    def evaluate(self, raster: OutlineRaster) -> Optional[Tuple[float, int, int]]:
        """Cheapest (cost, x, y) for a raster, or None if it does not fit."""
        w, h = raster.width, raster.height
        if w > self.width or h > self.height:
            return None
        windows = sliding_window_view(self.horizon, w)
        lift = np.where(raster.columns, windows - raster.bottom, _NO_CONSTRAINT)
        ys = np.maximum(lift.max(axis=1), 0)
        fits = ys + h <= self.height
        if not fits.any():
            return None

        if self.cost_function == CostFunction.min_wasted_space:
            gaps = np.where(raster.columns, ys[:, None] + raster.bottom - windows, 0)
            costs = gaps.sum(axis=1).astype(float)
        else:
            costs = (ys + raster.top[raster.columns].max()).astype(float)
        costs = np.where(fits, costs, np.inf)
        x = int(np.argmin(costs))
        return float(costs[x]), x, int(ys[x])

    def place(self, raster: OutlineRaster, x: int, y: int) -> None:
        span = self.horizon[x:x + raster.width]
        self.horizon[x:x + raster.width] = np.where(raster.columns, np.maximum(span, y + raster.top), span)

    def peak(self) -> int:
        return int(self.horizon.max()) if len(self.horizon) else 0


class RasterizedOutlinePacker:
    """
    Best-effort packing oracle backed by Pillow rasterization.

    Example:
        >>> packer = RasterizedOutlinePacker()
        >>> result = packer.pack(outlines, (4096, 4096), PackingParameters(), 4.0)
        >>> result.count
        3
    """

    def __init__(self, max_grid_dim: int = 2048):
        if max_grid_dim <= 0:
            raise ValueError("max_grid_dim must be positive")
        self.max_grid_dim = max_grid_dim

    def pack(
        self,
        outlines: Sequence[np.ndarray],
        container_size: Tuple[int, int],
        params: PackingParameters,
        scale: float,
    ) -> OracleResult:
        if params.double_horizon or params.inner_horizon:
            raise NotImplementedError("Only single bottom-horizon packing is supported")

        n = len(outlines)
        result = OracleResult.empty(n)
        width, height = container_size
        step = max(1, math.ceil(max(width, height) / self.max_grid_dim))
        grid_w, grid_h = width // step, height // step
        if n == 0 or grid_w <= 0 or grid_h <= 0:
            return result

        pad = math.ceil(params.gutter_width / step)
        turns = [k * (4 // params.rotation_num) for k in range(params.rotation_num)]
        rasters = [
            [rasterize_outline(o, k, scale, step, pad) for k in turns] if len(o) else []
            for o in outlines
        ]

        best_key = None
        best_placements: Dict[int, Tuple[OutlineRaster, int, int]] = {}
        for order in _orderings(outlines, params.permutations):
            packer = HorizonPacker(grid_w, grid_h, params.cost_function)
            placements = _pack_in_order(packer, order, rasters)
            key = (-len(placements), packer.peak())
            if best_key is None or key < best_key:
                best_key = key
                best_placements = placements

        for i, (raster, x, y) in best_placements.items():
            tx = (x + pad) * step - float(raster.origin[0])
            ty = (y + pad) * step - float(raster.origin[1])
            result.transforms[i] = Similarity2(raster.quarter_turns, scale, (tx, ty))
            result.containers[i] = 0
        result.count = len(best_placements)

        logger.debug(f"Raster packer placed {result.count}/{n} outlines on a {grid_w}x{grid_h} grid (step {step})")
        return result


def _pack_in_order(
    packer: HorizonPacker,
    order: Sequence[int],
    rasters: Sequence[List[OutlineRaster]],
) -> Dict[int, Tuple[OutlineRaster, int, int]]:
    placements = {}
    for i in order:
        best = None
        for raster in rasters[i]:
            found = packer.evaluate(raster)
            if found is not None and (best is None or found[0] < best[0]):
                best = (found[0], raster, found[1], found[2])
        if best is None:
            continue
        _, raster, x, y = best
        packer.place(raster, x, y)
        placements[i] = (raster, x, y)
    return placements


def _orderings(outlines: Sequence[np.ndarray], permutations: bool) -> List[List[int]]:
    """Chart orderings to try, largest first for every criterion."""
    boxes = [Box2.from_points(o) for o in outlines]
    criteria: List[Callable[[int], float]] = [lambda i: abs(signed_area(outlines[i]))]
    if permutations:
        criteria += [
            lambda i: boxes[i].dim_y if not boxes[i].is_null() else 0.0,
            lambda i: boxes[i].dim_x if not boxes[i].is_null() else 0.0,
            lambda i: perimeter(outlines[i]),
            lambda i: max(boxes[i].dim_x, boxes[i].dim_y) if not boxes[i].is_null() else 0.0,
        ]

    orders = []
    for criterion in criteria:
        order = sorted(range(len(outlines)), key=lambda i: -criterion(i))
        if order not in orders:
            orders.append(order)
    return orders
