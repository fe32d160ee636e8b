"""Quasi-random (alpha, lambda) candidates for the elastic-net search."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np
from scipy.stats import qmc


@dataclass(frozen=True)
class ElasticNetSpace:
    """Box over the mixing weight ``alpha`` and penalty strength ``lambda``.

    ``lambda`` is sampled uniformly on the log scale unless ``log_lambda``
    is False. ``digits`` rounds both coordinates, which makes repeated
    points possible; repeats are dropped by ``suggest_configs``.
    """

    lambda_low: float = 1e-4
    lambda_high: float = 1.0
    alpha_low: float = 0.0
    alpha_high: float = 1.0
    log_lambda: bool = True
    digits: int | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.alpha_low <= self.alpha_high <= 1.0:
            raise ValueError("alpha bounds must satisfy 0 <= alpha_low <= alpha_high <= 1")
        if not 0.0 < self.lambda_low <= self.lambda_high:
            raise ValueError("lambda bounds must satisfy 0 < lambda_low <= lambda_high")
        if self.digits is not None and self.digits < 0:
            raise ValueError("digits must be >= 0")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | ElasticNetSpace) -> ElasticNetSpace:
        if isinstance(raw, ElasticNetSpace):
            return raw
        return cls(**dict(raw))

    def to_params(self, u_alpha: float, u_lambda: float) -> dict[str, float]:
        alpha = self.alpha_low + u_alpha * (self.alpha_high - self.alpha_low)
        if self.log_lambda:
            lo, hi = math.log(self.lambda_low), math.log(self.lambda_high)
            lambda_ = math.exp(lo + u_lambda * (hi - lo))
        else:
            lambda_ = self.lambda_low + u_lambda * (self.lambda_high - self.lambda_low)
        # exp(log(x)) can drift just outside the box
        alpha = min(max(alpha, self.alpha_low), self.alpha_high)
        lambda_ = min(max(lambda_, self.lambda_low), self.lambda_high)
        if self.digits is not None:
            alpha = round(alpha, self.digits)
            lambda_ = round(lambda_, self.digits)
            if lambda_ <= 0.0:
                lambda_ = self.lambda_low
        return {"alpha": float(alpha), "lambda": float(lambda_)}


def suggest_configs(
    space: ElasticNetSpace | Mapping[str, Any],
    budget: int,
    seed: int,
) -> list[dict[str, float]]:
    """Draw ``budget`` scrambled Sobol points and map them into ``space``.

    Points are taken from the first ``2**m >= budget`` of the sequence so
    the set stays balanced. Candidates that collide after rounding are
    kept once, in draw order, so fewer than ``budget`` may come back.
    """
    if budget < 1:
        raise ValueError("budget must be >= 1")
    space = ElasticNetSpace.from_mapping(space)

    m = int(math.ceil(math.log2(budget)))
    engine = qmc.Sobol(d=2, scramble=True, seed=np.random.default_rng(seed))
    points = engine.random_base2(m=m)[:budget]

    out: list[dict[str, float]] = []
    for u_alpha, u_lambda in points:
        candidate = space.to_params(float(u_alpha), float(u_lambda))
        if candidate not in out:
            out.append(candidate)
    return out
