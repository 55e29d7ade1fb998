# coding: utf-8

# ====================================================
# imports
from .base import Move
from .base import State
from .ingber import DeltaProbe
from .ingber import IngberStep

# ====================================================
# code

__all__ = [
    "Move",
    "State",
    "DeltaProbe",
    "IngberStep",
]
