# custom_types.py
"""
Type aliases shared across mixdrift.

Conventions:
- Annotate function input with `ArrayLike`
- Annotate function output with `Array`
- Random number generators are numpy `Generator` objects, aliased `PRNG`
"""
from __future__ import annotations
from typing import TypeAlias, TypeVar

from numpy.random import Generator as NumpyRNG

from numpy.typing import (
    NDArray as NumpyArray,
    ArrayLike as NumpyArrayLike
)

from numpy import (
    floating as NumpyFloating,
    integer as NumpyInteger,
)

Array = NumpyArray
ArrayLike: TypeAlias = NumpyArrayLike
Float: TypeAlias = NumpyFloating
Int: TypeAlias = NumpyInteger
PRNG: TypeAlias = NumpyRNG

T = TypeVar("T", bound=NumpyFloating)
