# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import smallworld.common.typing as tp
from smallworld.common.decorators import Registry


registry: Registry[tp.Objective] = Registry()


@registry.register
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    assert x.ndim == 1
    return float(np.sum(x ** 2))


@registry.register
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function: 10 * D + sum(x_i^2 - 10 * cos(2 * pi * x_i)).
    Global minimum 0 at the origin, with a local minimum close to each point of the integer grid.
    """
    assert x.ndim == 1
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + sphere(x))


def evaluate(point: tp.ArrayLike, objective: str = "rastrigin") -> float:
    """Fitness of a point (lower is better)

    Parameters
    ----------
    point: array-like
        the point to evaluate, of any dimension
    objective: str
        name of a registered objective function
    """
    return registry.resolve(objective)(np.asarray(point, dtype=float))
