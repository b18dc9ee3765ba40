"""
Atlas allocation: the container growth loop.

Charts are packed in rounds. Each round offers every chart that is still
unassigned to the packing oracle against a single container. If nothing
fits, the container grows by 10% and the oracle is asked again; once
something fits, the container is frozen and the next round opens the next
container.

Chart states:
    UNRESOLVED              never placed (also the terminal state when the
                            container size ceiling stops the loop)
    SKIPPED_EMPTY_OUTLINE   outline has no points
    SKIPPED_INVALID_BBOX    outline box is non-finite or negative
    SKIPPED_OVERSIZED       scaled box diagonal exceeds the rasterizer limit
    PACKED                  placed in `container` with `transform`

Skipped charts add to `total_packed` exactly like placed charts.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from chartatlas.geometry import Box2, Similarity2
from chartatlas.mesh.texture import TextureObject, TextureSize
from chartatlas.packing.exceptions import PackingAttemptsExceeded, PackingInvariantError
from chartatlas.packing.oracle import OracleResult, PackingOracle
from chartatlas.packing.params import (
    GROWTH_FACTOR,
    MAX_CONTAINER_SIZE,
    MAX_PACK_ATTEMPTS,
    PACKING_SIZE,
    PERMUTATION_BATCH_LIMIT,
    RASTER_MAX_DIM,
    AlgoParameters,
    PackingParameters,
)

logger = logging.getLogger(__name__)


class ChartState(str, Enum):
    unresolved = "unresolved"
    skipped_empty_outline = "skipped_empty_outline"
    skipped_invalid_bbox = "skipped_invalid_bbox"
    skipped_oversized = "skipped_oversized"
    packed = "packed"


SKIPPED_STATES = {
    ChartState.skipped_empty_outline,
    ChartState.skipped_invalid_bbox,
    ChartState.skipped_oversized,
}


@dataclass
class Assignment:
    """Terminal packing state of one chart."""
    state: ChartState = ChartState.unresolved
    container: Optional[int] = None
    transform: Optional[Similarity2] = None

    @property
    def is_packed(self) -> bool:
        return self.state == ChartState.packed


@dataclass
class Container:
    """A packing grid slot. Frozen once a chart has been committed to it."""
    index: int
    width: int
    height: int
    frozen: bool = False

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def grow(self, factor: float = GROWTH_FACTOR) -> None:
        if self.frozen:
            raise PackingInvariantError(f"Container {self.index} is frozen at {self.width}x{self.height} and cannot grow")
        self.width = int(self.width * factor)
        self.height = int(self.height * factor)

    def freeze(self) -> None:
        self.frozen = True


@dataclass
class Allocation:
    """Result of the growth loop."""
    assignments: List[Assignment]
    containers: List[Container]
    texture_sizes: List[TextureSize] = field(default_factory=list)
    packing_scale: float = 1.0
    total_packed: int = 0

    def grid_size(self, index: int) -> Tuple[int, int]:
        return self.containers[index].size

    def count(self, state: ChartState) -> int:
        return sum(1 for a in self.assignments if a.state == state)


def initial_containers(texture_object: TextureObject) -> List[Container]:
    """One container per source texture, sized relative to the largest one."""
    containers = []
    for i, (rw, rh) in enumerate(texture_object.compute_relative_sizes()):
        containers.append(Container(i, int(PACKING_SIZE * rw), int(PACKING_SIZE * rh)))
    return containers


def compute_packing_scale(
    containers: Sequence[Container],
    texture_object: TextureObject,
    resolution_scaling: float = 1.0,
) -> float:
    """
    Factor mapping texel-space outlines onto the packing grid.

    sqrt(total container area / total requested texture area), where the
    requested area is the source texture area scaled by resolution_scaling².
    """
    packing_area = 0
    texture_area = 0
    for i, container in enumerate(containers):
        packing_area += container.width * container.height
        texture_area += texture_object.texture_width(i) * texture_object.texture_height(i)

    target_area = texture_area * resolution_scaling * resolution_scaling
    packing_scale = math.sqrt(packing_area / target_area) if target_area > 0 else 1.0

    if not math.isfinite(packing_scale) or packing_scale <= 0:
        logger.warning(
            f"Invalid packing scale computed: {packing_scale}. Resetting to 1.0. "
            f"(packing_area={packing_area}, texture_area={texture_area})"
        )
        packing_scale = 1.0

    logger.info(f"Packing scale factor: {packing_scale} (packing_area={packing_area}, texture_area={texture_area})")
    return packing_scale


def _classify(outline: np.ndarray, packing_scale: float) -> Optional[ChartState]:
    """Skip state for a degenerate outline, None if it can be packed."""
    if len(outline) == 0:
        return ChartState.skipped_empty_outline
    box = Box2.from_points(outline)
    if not math.isfinite(box.dim_x) or not math.isfinite(box.dim_y) or box.dim_x < 0 or box.dim_y < 0:
        return ChartState.skipped_invalid_bbox
    w = box.dim_x * packing_scale
    h = box.dim_y * packing_scale
    if math.sqrt(w * w + h * h) > RASTER_MAX_DIM:
        return ChartState.skipped_oversized
    return None


def _check_oracle_result(result: OracleResult, batch_size: int) -> None:
    if len(result.transforms) != batch_size or len(result.containers) != batch_size:
        raise PackingInvariantError(
            f"Oracle returned {len(result.transforms)} transforms and {len(result.containers)} "
            f"container indices for a batch of {batch_size} outlines"
        )
    placed = 0
    for i, (container, transform) in enumerate(zip(result.containers, result.transforms)):
        if container == -1:
            continue
        if container != 0:
            raise PackingInvariantError(
                f"Oracle placed outline {i} into container {container}, but only container 0 was offered"
            )
        if transform is None:
            raise PackingInvariantError(f"Oracle placed outline {i} without a transform")
        placed += 1
    if placed != result.count:
        raise PackingInvariantError(f"Oracle reported {result.count} placements but assigned {placed} outlines")


def allocate_atlas(
    outlines: Sequence[np.ndarray],
    texture_object: TextureObject,
    params: AlgoParameters,
    oracle: PackingOracle,
    packing_params: Optional[PackingParameters] = None,
) -> Allocation:
    """
    Pack outlines into as many containers as needed.

    Args:
        outlines: One (N, 2) outline per chart, in texel units
        texture_object: Source textures, one initial container per texture
        params: Algorithm parameters
        oracle: Best-effort packer for a single container
        packing_params: Oracle parameters; `permutations` is overridden per batch

    Returns:
        Allocation with one Assignment per outline

    Raises:
        PackingAttemptsExceeded: If a batch could not be placed within MAX_PACK_ATTEMPTS
        PackingInvariantError: If the oracle breaks its contract
    """
    if packing_params is None:
        packing_params = PackingParameters()

    containers = initial_containers(texture_object)
    packing_scale = compute_packing_scale(containers, texture_object, params.resolution_scaling)

    assignments = [Assignment() for _ in outlines]
    allocation = Allocation(assignments, containers, packing_scale=packing_scale)

    nc = 0
    while allocation.total_packed < len(outlines):
        if nc >= len(containers):
            containers.append(Container(nc, PACKING_SIZE, PACKING_SIZE))
        container = containers[nc]

        batch = [i for i, a in enumerate(assignments) if a.state == ChartState.unresolved]
        if not batch:
            break

        to_pack = []
        for i in batch:
            skip = _classify(outlines[i], packing_scale)
            if skip is None:
                to_pack.append(i)
                continue
            if skip == ChartState.skipped_empty_outline:
                logger.warning(f"Skipping empty outline for chart index {i}")
            elif skip == ChartState.skipped_invalid_bbox:
                logger.warning(f"Skipping chart index {i} due to invalid/non-finite UV bounding box")
            else:
                logger.warning(f"Skipping chart index {i} because its scaled diagonal exceeds {RASTER_MAX_DIM}")
            assignments[i].state = skip
            allocation.total_packed += 1

        if not to_pack:
            continue

        areas = [Box2.from_points(outlines[i]).area() for i in to_pack]
        largest = int(np.argmax(areas))
        logger.info(f"Largest chart in this packing batch is index {to_pack[largest]} with UV area {areas[largest]}")

        batch_params = packing_params.model_copy(update={'permutations': len(to_pack) < PERMUTATION_BATCH_LIMIT})
        batch_outlines = [outlines[i] for i in to_pack]

        attempts = 0
        while True:
            attempts += 1
            if attempts > MAX_PACK_ATTEMPTS:
                logger.error(
                    f"Packing loop exceeded {MAX_PACK_ATTEMPTS} attempts "
                    f"(grid size {container.width}x{container.height}, {len(to_pack)} charts)"
                )
                raise PackingAttemptsExceeded(container.size, len(to_pack), MAX_PACK_ATTEMPTS)

            logger.info(
                f"Packing {len(to_pack)} charts into grid of size {container.width} {container.height} "
                f"(Attempt {attempts})"
            )
            result = oracle.pack(batch_outlines, container.size, batch_params, packing_scale)
            _check_oracle_result(result, len(to_pack))
            logger.info(f"Packing attempt finished. Charts packed: {result.count}.")
            if result.count > 0:
                break

            logger.warning(f"Failed to pack any of the {len(to_pack)} charts in this batch.")
            container.grow()
            if container.width > MAX_CONTAINER_SIZE or container.height > MAX_CONTAINER_SIZE:
                break

        if result.count == 0:
            logger.warning(
                f"Container {nc} exceeded {MAX_CONTAINER_SIZE} without placing any chart, "
                f"{len(to_pack)} charts left unpacked"
            )
            break

        allocation.total_packed += result.count
        texture_scale = 1.0 / packing_scale
        allocation.texture_sizes.append(
            TextureSize(int(container.width * texture_scale), int(container.height * texture_scale))
        )
        container.freeze()
        for k, i in enumerate(to_pack):
            if result.containers[k] == -1:
                continue
            assignments[i].state = ChartState.packed
            assignments[i].container = nc
            assignments[i].transform = result.transforms[k]
        nc += 1

    del containers[nc:]
    logger.info(
        f"Packed {allocation.count(ChartState.packed)} charts into {len(allocation.texture_sizes)} containers "
        f"({sum(allocation.count(s) for s in SKIPPED_STATES)} skipped)"
    )
    return allocation
