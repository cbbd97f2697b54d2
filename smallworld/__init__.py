# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .functions.corefuncs import evaluate as evaluate
from .optimization import mutations as mutations
from .optimization import boundaries as boundaries
from .optimization import SearchConfig as SearchConfig
from .optimization import SmallWorldSearch as SmallWorldSearch
from .optimization import find_best_solution as find_best_solution
from .optimization import optimize as optimize


__all__ = [
    "optimize",
    "evaluate",
    "find_best_solution",
    "SearchConfig",
    "SmallWorldSearch",
    "mutations",
    "boundaries",
    "errors",
    "typing",
]


__version__ = "0.1.0"
