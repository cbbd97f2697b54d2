# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import smallworld.common.typing as tp
from smallworld.common import errors
from smallworld.common.decorators import Registry
from .mutations import MutationLaw


registry: Registry[tp.Type["BoundaryPolicy"]] = Registry()


class ViolationCounter:
    """Diagnostic counts of boundary violations, owned by a single run
    (or a single task in threaded runs, merged afterwards with update).

    Attributes
    ----------
    low: int
        number of coordinates drawn below the lower bound
    high: int
        number of coordinates drawn above the upper bound
    resampled: int
        number of coordinates redrawn by the rejection policy
    unresolved: int
        number of coordinates still out of bounds after a reflection
    """

    _fields = ("low", "high", "resampled", "unresolved")

    def __init__(self) -> None:
        self.low = 0
        self.high = 0
        self.resampled = 0
        self.unresolved = 0

    def count(self, values: np.ndarray, lower: float, upper: float) -> None:
        self.low += int(np.sum(values < lower))
        self.high += int(np.sum(values > upper))

    def update(self, other: "ViolationCounter") -> None:
        for name in self._fields:
            setattr(self, name, getattr(self, name) + getattr(other, name))

    def as_dict(self) -> tp.Dict[str, int]:
        return {name: getattr(self, name) for name in self._fields}

    def __eq__(self, other: tp.Any) -> bool:
        return isinstance(other, ViolationCounter) and self.as_dict() == other.as_dict()

    def __repr__(self) -> str:
        args = ", ".join(f"{x}={y}" for x, y in self.as_dict().items())
        return f"{self.__class__.__name__}({args})"


class BoundaryPolicy:
    """Base class for policies bringing mutated points back within [lower, upper]"""

    @property
    def name(self) -> str:
        return self.__class__.__name__.lower()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def check(self, law: MutationLaw, lower: float, upper: float) -> None:
        """Raises if the policy cannot be safely used with the law (nothing to check by default)"""

    def apply(
        self, values: tp.ArrayLike, lower: float, upper: float, counter: tp.Optional[ViolationCounter] = None
    ) -> np.ndarray:
        """Projects an already drawn point into the bounds, returning a new array"""
        raise NotImplementedError

    def mutate(
        self,
        law: MutationLaw,
        parent: np.ndarray,
        random_state: tp.RandomSource,
        lower: float,
        upper: float,
        counter: tp.Optional[ViolationCounter] = None,
    ) -> np.ndarray:
        """Draws a mutant of parent with the law, and enforces the bounds on it"""
        return self.apply(law.draw(parent, random_state), lower, upper, counter)


@registry.register
class Clamp(BoundaryPolicy):
    """Saturates out of bounds coordinates to the closest bound"""

    def apply(
        self, values: tp.ArrayLike, lower: float, upper: float, counter: tp.Optional[ViolationCounter] = None
    ) -> np.ndarray:
        values = np.asarray(values, dtype=float)
        if counter is not None:
            counter.count(values, lower, upper)
        return np.clip(values, lower, upper)  # type: ignore


@registry.register
class Reflect(BoundaryPolicy):
    """Mirrors the overshoot back across the violated bound: 2 * lower - v or 2 * upper - v.

    Caution
    -------
    The reflection is applied once: an overshoot larger than the width of the bounds
    still lands outside. Such coordinates are counted as unresolved and left as is.
    """

    def apply(
        self, values: tp.ArrayLike, lower: float, upper: float, counter: tp.Optional[ViolationCounter] = None
    ) -> np.ndarray:
        values = np.asarray(values, dtype=float)
        out = np.where(values < lower, 2 * lower - values, values)
        out = np.where(values > upper, 2 * upper - values, out)
        if counter is not None:
            counter.count(values, lower, upper)
            counter.unresolved += int(np.sum(np.logical_or(out < lower, out > upper)))
        return out  # type: ignore


@registry.register
class RejectResample(BoundaryPolicy):
    """Redraws out of bounds coordinates from the parent until they land within bounds.

    Parameters
    ----------
    max_resamples: int
        number of redraw rounds after which the mutation is considered stalled
        and a PotentialNonTerminationError is raised.

    Note
    ----
    check refuses laws for which some starting coordinate lands within bounds with
    a probability lower than min_acceptance (eg: the uniform law, which can never
    move down from the upper bound).
    """

    min_acceptance = 1e-3

    def __init__(self, max_resamples: int = 10000) -> None:
        if max_resamples < 1:
            raise errors.InvalidConfigurationError(f"max_resamples should be positive (got {max_resamples})")
        self.max_resamples = max_resamples

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(max_resamples={self.max_resamples})"

    def check(self, law: MutationLaw, lower: float, upper: float) -> None:
        acceptance = law.worst_case_acceptance(lower, upper)
        if acceptance < self.min_acceptance:
            raise errors.PotentialNonTerminationError(
                f"{law} lands within [{lower}, {upper}] with probability {acceptance:.3g} from the worst "
                f"starting point, rejection resampling may never terminate"
            )

    def mutate(
        self,
        law: MutationLaw,
        parent: np.ndarray,
        random_state: tp.RandomSource,
        lower: float,
        upper: float,
        counter: tp.Optional[ViolationCounter] = None,
    ) -> np.ndarray:
        counter = ViolationCounter() if counter is None else counter
        candidate = law.draw(parent, random_state)
        for _ in range(self.max_resamples):
            outside = np.logical_or(candidate < lower, candidate > upper)
            if not outside.any():
                return candidate
            counter.count(candidate, lower, upper)
            counter.resampled += int(np.sum(outside))
            candidate = np.where(outside, law.draw(parent, random_state), candidate)
        if np.logical_or(candidate < lower, candidate > upper).any():
            raise errors.PotentialNonTerminationError(
                f"{law} could not land within [{lower}, {upper}] after {self.max_resamples} resamples"
            )
        return candidate


registry.register_name("reject", RejectResample)


def as_policy(policy: tp.Union[str, BoundaryPolicy]) -> BoundaryPolicy:
    """Returns a policy instance, from an instance or a registered name"""
    if isinstance(policy, BoundaryPolicy):
        return policy
    return registry.resolve(policy)()
