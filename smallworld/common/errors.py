# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class SmallWorldError(Exception):
    """Base class for error raised by smallworld"""


class SmallWorldWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class InvalidConfigurationError(ValueError, SmallWorldError):
    """Run configuration is rejected before the search starts
    (non-positive sizes, probability out of [0, 1], unknown names etc)
    """


class InvalidInputError(ValueError, SmallWorldError):
    """Input data cannot be processed (eg: empty set of candidates)"""


class PotentialNonTerminationError(RuntimeError, SmallWorldError):
    """The rejection boundary policy may stall: the mutation law rarely or never
    lands inside the bounds
    """


# warnings


class SmallWorldRuntimeWarning(RuntimeWarning, SmallWorldWarning):
    """Runtime warning raised by smallworld"""


class BoundaryOvershootWarning(SmallWorldRuntimeWarning):
    """A single reflection did not bring some coordinates back within bounds"""
