# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import numpy as np
import smallworld.common.typing as tp
from smallworld.common import errors
from smallworld.common.decorators import Registry


registry: Registry[tp.Type["MutationLaw"]] = Registry()


class MutationLaw:
    """Base class for mutation laws, which move each coordinate of a point
    independently by a random step scaled by a strength.

    Parameters
    ----------
    strength: float
        scale of the step (standard deviation, interval width or Cauchy scale
        depending on the law). Must be non-negative.

    Note
    ----
    Subclasses implement _step, which draws the unscaled steps, and step_cdf,
    the cumulative distribution function of the scaled step.
    """

    def __init__(self, strength: float) -> None:
        if not strength >= 0:  # also catches nan
            raise errors.InvalidConfigurationError(
                f"{self.__class__.__name__} strength should be non-negative (got {strength})"
            )
        self.strength = float(strength)

    @property
    def name(self) -> str:
        return self.__class__.__name__.lower()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.strength:g})"

    def __eq__(self, other: tp.Any) -> bool:
        return isinstance(other, self.__class__) and other.strength == self.strength

    def _step(self, random_state: tp.RandomSource, shape: tp.Tuple[int, ...]) -> np.ndarray:
        raise NotImplementedError

    def step_cdf(self, step: float) -> float:
        """Probability that a (scaled) step is lower or equal to step"""
        raise NotImplementedError

    def draw(self, point: np.ndarray, random_state: tp.RandomSource) -> np.ndarray:
        """Returns a new point, each coordinate being moved independently"""
        point = np.asarray(point, dtype=float)
        return point + self.strength * np.asarray(self._step(random_state, point.shape), dtype=float)

    def acceptance_probability(self, x: float, lower: float, upper: float) -> float:
        """Probability for a coordinate x to land in [lower, upper] after one draw"""
        if not self.strength:
            return 1.0 if lower <= x <= upper else 0.0
        return max(0.0, self.step_cdf(upper - x) - self.step_cdf(lower - x))

    def worst_case_acceptance(self, lower: float, upper: float) -> float:
        """Minimum over starting coordinates in [lower, upper] of the acceptance probability.
        Laws are unimodal with a mode at 0 step, so the minimum is reached on a bound.
        """
        return min(self.acceptance_probability(x, lower, upper) for x in (lower, upper))


@registry.register
class Gaussian(MutationLaw):
    """new = old + strength * Z, Z being standard normal"""

    def _step(self, random_state: tp.RandomSource, shape: tp.Tuple[int, ...]) -> np.ndarray:
        return random_state.standard_normal(size=shape)  # type: ignore

    def step_cdf(self, step: float) -> float:
        return 0.5 * (1.0 + math.erf(step / (self.strength * math.sqrt(2.0))))


@registry.register
class Uniform(MutationLaw):
    """new = old + strength * U, U being uniform in [0, 1)

    Caution
    -------
    The step is never negative: this law can only increase coordinates.
    This directional bias is kept on purpose. Combined with the rejection
    boundary policy it can never move away from the upper bound.
    """

    def _step(self, random_state: tp.RandomSource, shape: tp.Tuple[int, ...]) -> np.ndarray:
        return random_state.uniform(0.0, 1.0, size=shape)  # type: ignore

    def step_cdf(self, step: float) -> float:
        return min(1.0, max(0.0, step / self.strength))


@registry.register
class Cauchy(MutationLaw):
    """new = old + strength * tan(pi * (U - 0.5)), U being uniform in [0, 1).
    Heavy-tailed, for long range exploration.
    """

    def _step(self, random_state: tp.RandomSource, shape: tp.Tuple[int, ...]) -> np.ndarray:
        u = np.asarray(random_state.uniform(0.0, 1.0, size=shape), dtype=float)
        return np.tan(np.pi * (u - 0.5))  # type: ignore

    def step_cdf(self, step: float) -> float:
        return 0.5 + math.atan(step / self.strength) / math.pi


registry.register_name("normal", Gaussian)


def as_law(law: tp.Union[str, MutationLaw], strength: tp.Optional[float] = None) -> MutationLaw:
    """Returns a law instance, from an instance or a registered name and a strength"""
    if isinstance(law, MutationLaw):
        if strength is not None:
            raise errors.InvalidConfigurationError(
                f"Cannot set strength {strength} on the already built law {law}, provide its name instead"
            )
        return law
    if strength is None:
        raise errors.InvalidConfigurationError(f'A strength is required to build law "{law}"')
    return registry.resolve(law)(strength)
