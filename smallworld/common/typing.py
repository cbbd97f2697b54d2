# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
Objective = Callable[[_np.ndarray], float]
Solution = Tuple[_np.ndarray, float]


# %% Protocol definitions for random sources


class RandomSource(Protocol):
    """Anything providing uniform and standard normal draws the way
    numpy.random.RandomState does
    """

    # pylint: disable=pointless-statement, unused-argument

    def uniform(self, low: float = 0.0, high: float = 1.0, size: Any = None) -> Any:
        ...

    def standard_normal(self, size: Any = None) -> Any:
        ...


RandomLike = Union[None, int, RandomSource]
