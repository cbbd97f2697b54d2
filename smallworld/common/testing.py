# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import inspect
import typing as tp
import pytest
import numpy as np


def assert_set_equal(estimate: tp.Iterable[tp.Any], reference: tp.Iterable[tp.Any], err_msg: str = "") -> None:
    """Asserts that both sets are equals, with comprehensive error message.
    This function should only be used in tests.
    Parameters
    ----------
    estimate: iterable
        sequence of elements to compare with the reference set of elements
    reference: iterable
        reference sequence of elements
    """
    estimate, reference = (set(x) for x in [estimate, reference])
    elements = [("additional", estimate - reference), ("missing", reference - estimate)]
    messages = ["  - {} element(s): {}.".format(name, s) for (name, s) in elements if s]
    if messages:
        messages = ([err_msg] if err_msg else []) + ["Sets are not equal:"] + messages
        raise AssertionError("\n".join(messages))


def assert_within_bounds(population: np.ndarray, lower: float, upper: float) -> None:
    """Asserts that every coordinate of every point lies in [lower, upper]"""
    population = np.asarray(population)
    outside = np.logical_or(population < lower, population > upper)
    if outside.any():
        raise AssertionError(
            f"{int(outside.sum())} coordinate(s) outside [{lower}, {upper}]:\n{population[outside]}"
        )


class SequenceRandomState:
    """Deterministic random source replaying predefined draws,
    for checking step by step behaviors in tests.

    Parameters
    ----------
    uniforms: sequence of float
        values returned (in order) by the uniform method, within [0, 1)
    normals: sequence of float
        values returned (in order) by the standard_normal method
    """

    def __init__(self, uniforms: tp.Iterable[float] = (), normals: tp.Iterable[float] = ()) -> None:
        self._uniforms = list(uniforms)
        self._normals = list(normals)

    @staticmethod
    def _pop(values: tp.List[float], name: str, size: tp.Any) -> tp.Any:
        num = 1 if size is None else int(np.prod(size))
        if len(values) < num:
            raise AssertionError(f"Not enough {name} draws left (requested {num}, {len(values)} left)")
        out = np.array([values.pop(0) for _ in range(num)])
        return float(out[0]) if size is None else out.reshape(size)

    def uniform(self, low: float = 0.0, high: float = 1.0, size: tp.Any = None) -> tp.Any:
        return low + (high - low) * self._pop(self._uniforms, "uniform", size)

    def standard_normal(self, size: tp.Any = None) -> tp.Any:
        return self._pop(self._normals, "standard_normal", size)


class parametrized:
    """Simplified decorator API for specifying named parametrized test with pytests
    (like with old "genty" package)
    See example of use in test_testing

    Parameters
    ----------
    **kwargs:
        name of the argument is converted as id of the experiments, and the provided tuple
        contains a value for each of the arguments of the underlying function (in the definition order).
    """

    def __init__(self, **kwargs: tp.Tuple[tp.Any, ...]):
        self.ids = sorted(kwargs)
        self.params = tuple(kwargs[name] for name in self.ids)
        assert self.params
        self.num_params = len(self.params[0])
        assert all(isinstance(p, (tuple, list)) for p in self.params)
        assert all(self.num_params == len(p) for p in self.params[1:])

    def __call__(self, func: tp.Callable[..., None]) -> tp.Any:  # type is lost here :(
        names = list(inspect.signature(func).parameters.keys())
        assert len(names) == self.num_params, f"Parameter names: {names}"
        return pytest.mark.parametrize(
            ",".join(names), self.params if self.num_params > 1 else [p[0] for p in self.params], ids=self.ids
        )(func)
