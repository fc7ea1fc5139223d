"""Shared factories for rate-through-time test data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from rtt.core.models import SourceType
from rtt.envelope.matrix import RateThroughTimeMatrix

# 3 samples x 3 bins, used across the scenario tests
SCENARIO_MATRIX = [[1.0, 2.0, 3.0], [3.0, 2.0, 1.0], [2.0, 2.0, 2.0]]
SCENARIO_TIMES = [0.0, 1.0, 2.0]


def mk_diversification(
    n_samples: int = 200,
    n_bins: int = 50,
    *,
    seed: int = 1337,
    with_mu: bool = True,
    t_max: float = 30.0,
) -> RateThroughTimeMatrix:
    """Speciation decaying toward the present, extinction roughly flat."""
    rng = np.random.default_rng(seed)
    times = np.linspace(0.0, t_max, n_bins)
    base = 0.25 * np.exp(-times / t_max) + 0.05
    lam = base[None, :] * rng.lognormal(0.0, 0.2, size=(n_samples, 1))
    lam = lam + rng.normal(0.0, 0.005, size=(n_samples, n_bins))
    mu = None
    if with_mu:
        mu = np.clip(0.4 * lam + rng.normal(0.0, 0.005, size=lam.shape), 0.0, None)
    return RateThroughTimeMatrix.diversification(np.clip(lam, 0.0, None), mu, times)


def mk_trait(n_samples: int = 100, n_bins: int = 40, *, seed: int = 7) -> RateThroughTimeMatrix:
    rng = np.random.default_rng(seed)
    times = np.linspace(0.0, 20.0, n_bins)
    beta = rng.gamma(shape=4.0, scale=0.05, size=(n_samples, n_bins))
    return RateThroughTimeMatrix.trait(beta, times)


@dataclass
class FakeProvider:
    """Provider double recording the derivation parameters it was called with."""

    rmat: RateThroughTimeMatrix
    source_type: SourceType = SourceType.DIVERSIFICATION
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def rate_matrix(
        self,
        *,
        start_time: Optional[float],
        end_time: Optional[float],
        node: Optional[int],
        nslices: int,
        nodetype: str,
    ) -> RateThroughTimeMatrix:
        self.calls.append(
            {
                "start_time": start_time,
                "end_time": end_time,
                "node": node,
                "nslices": nslices,
                "nodetype": nodetype,
            }
        )
        return self.rmat
