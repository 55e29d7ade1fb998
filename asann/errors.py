# coding: utf-8

"""
Defines custom errors.
"""


# ====================================================
# code
class ShapeError(Exception):
    """
    Custom error for shape mismatches.
    """


class AnnealerStateError(RuntimeError):
    """
    Raised when the Annealer is driven out of protocol : stepping before initialization, changing parameters after
        initialization or stepping without providing the objective values requested by the current state.
    """


class AnnealerError(RuntimeError):
    """
    Base class for fatal errors of the annealing algorithm. The Annealer's state is left untouched when raised.
    """


class NonFiniteSensitivityError(AnnealerError):
    """
    The estimated sensitivities of the objective contain NaN or inf values.
    """


class NonPositiveTemperatureError(AnnealerError):
    """
    A rescaled temperature is <= 0 at the end of a reanneal.
    """
