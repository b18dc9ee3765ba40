"""
Packing configuration.

Fixed limits of the growth loop live here as module constants; tunable
values are pydantic models so they can be validated when they come from
the command line or a JSON document.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Longest side of the packing grid for a full-size atlas
PACKING_SIZE = 16384

# Largest scaled chart diagonal the rasterizer accepts
RASTER_MAX_DIM = 32766.0

# Containers stop growing once a side exceeds this
MAX_CONTAINER_SIZE = 20000

MAX_PACK_ATTEMPTS = 50

GROWTH_FACTOR = 1.1

# Permutation search is only enabled for batches smaller than this
PERMUTATION_BATCH_LIMIT = 50


class CostFunction(str, Enum):
    lowest_horizon = "lowest_horizon"
    min_wasted_space = "min_wasted_space"


class PackingParameters(BaseModel):
    """Parameter bundle handed to the packing oracle on every attempt."""
    model_config = ConfigDict(extra='forbid')

    rotation_num: int = Field(4, description="Number of allowed rotations (1, 2 or 4 quarter-turn steps).")
    gutter_width: int = Field(4, ge=0, description="Empty border kept around each chart, in grid units.")
    cost_function: CostFunction = Field(CostFunction.lowest_horizon, description="Placement cost.")
    double_horizon: bool = Field(False, description="Also pack against a left horizon.")
    inner_horizon: bool = Field(False, description="Allow placement into holes below the horizon.")
    permutations: bool = Field(True, description="Try several chart orderings and keep the best.")

    @field_validator('rotation_num')
    @classmethod
    def validate_rotation_num(cls, v):
        if v not in (1, 2, 4):
            raise ValueError("rotation_num must be 1, 2 or 4 (quarter-turn rotations only)")
        return v


class AlgoParameters(BaseModel):
    """User-facing algorithm parameters."""
    model_config = ConfigDict(extra='forbid')

    resolution_scaling: float = Field(1.0, gt=0, description="Output texel density relative to the input textures.")
    integer_shift: bool = Field(True, description="Restore sub-texel alignment of anchored charts after packing.")
