# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from . import mutations as mutations
from . import boundaries as boundaries
from .search import SearchConfig as SearchConfig
from .search import SmallWorldSearch as SmallWorldSearch
from .search import find_best_solution as find_best_solution
from .search import optimize as optimize
