# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
from . import errors


X = tp.TypeVar("X")


# pylint does not understand Dict[str, X],
# so we reimplement the MutableMapping interface
class Registry(tp.MutableMapping[str, X]):
    """Registers functions or classes as a dict, under a lowercase name.
    Objectives, mutation laws and boundary policies are all looked up
    by name through such registries.
    """

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}

    def register(self, obj: X) -> X:
        """Decorator method for registering functions/classes"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        self.register_name(name.lower(), obj)
        return obj

    def register_name(self, name: str, obj: X) -> None:
        """Register an object with a provided name"""
        if name in self:
            raise RuntimeError(f'Encountered a name collision "{name}"')
        self[name] = obj

    def unregister(self, name: str) -> None:
        """Remove a previously-registered function or class"""
        if name in self:
            del self[name]

    def resolve(self, name: str) -> X:
        """Returns the object registered as name, with a configuration error
        listing the available names if there is none.
        """
        try:
            return self[name.lower()]
        except KeyError:
            raise errors.InvalidConfigurationError(
                f'"{name}" is not registered, choose among {sorted(self)}'
            ) from None

    def __getitem__(self, key: str) -> X:
        return self.data[key]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
