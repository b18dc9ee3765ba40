"""
Packing oracle interface.

The growth loop never places charts itself: it hands a batch of outlines and
one container size to an oracle and consumes whatever the oracle managed to
place. Any object with a matching ``pack`` method can be used, which keeps
the growth loop testable with stub oracles.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from chartatlas.geometry import Similarity2
from chartatlas.packing.params import PackingParameters


@dataclass
class OracleResult:
    """
    Outcome of one packing attempt.

    Attributes:
        count: Number of outlines placed
        transforms: Placement per outline, None when unassigned
        containers: Container per outline; 0 (the only container offered) or -1
    """
    count: int
    transforms: List[Optional[Similarity2]] = field(default_factory=list)
    containers: List[int] = field(default_factory=list)

    @classmethod
    def empty(cls, n: int) -> "OracleResult":
        return cls(count=0, transforms=[None] * n, containers=[-1] * n)


class PackingOracle(Protocol):
    """Best-effort packer of polygon outlines into a single container."""

    def pack(
        self,
        outlines: Sequence[np.ndarray],
        container_size: Tuple[int, int],
        params: PackingParameters,
        scale: float,
    ) -> OracleResult:
        ...
