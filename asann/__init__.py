"""
Adaptive Simulated ANNealing.
This package provides an implementation of Lester Ingber's Adaptive Simulated Annealing for optimizing functions over
bounded real-valued parameter spaces.
"""

from importlib import metadata

from asann.algorithms.asa import asa
from asann.annealer import Annealer
from asann.annealer import AnnealState
from asann.annealer import NeedsObjective
from asann.annealer import NeedsObjectiveSet
from asann.annealer import StopCondition
from asann.annealer import Stopped
from asann.errors import AnnealerError
from asann.errors import AnnealerStateError
from asann.storage.history import History
from asann.storage.parameters import ASAParameters
from asann.storage.result import Result

__all__ = [
    "asa",
    "Annealer",
    "AnnealState",
    "StopCondition",
    "NeedsObjective",
    "NeedsObjectiveSet",
    "Stopped",
    "AnnealerError",
    "AnnealerStateError",
    "ASAParameters",
    "History",
    "Result",
]

__version__ = metadata.version("asann")
