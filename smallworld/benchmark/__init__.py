# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .core import sweep as sweep
from .core import best_parameters as best_parameters
from .core import make_packages as make_packages
from .core import MutationPackage as MutationPackage
