# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

from attrs import frozen

from typing import TYPE_CHECKING

import asann.typing as ast
from asann.storage.history import History
from asann.storage.parameters import ASAParameters

if TYPE_CHECKING:
    from asann.annealer import Annealer
    from asann.annealer import StopCondition


# ====================================================
# code
@frozen(repr=False)
class Result:
    """
    Object for storing the results of a run.

    Args:
        message: the exit message.
        success: boolean indicating if the ASA algorithm reached one of its stopping conditions.
        annealer: the Annealer that was run.
    """

    message: str  #: the exit message.
    success: bool  #: boolean indicating if the ASA algorithm reached one of its stopping conditions.
    annealer: Annealer  #: the Annealer that was run.

    # region magic methods
    def __repr__(self) -> str:
        return (
            f"Result(\n"
            f"\tmessage: {self.message}\n"
            f"\tsuccess: {self.success}\n"
            f"\thistory: {self.history}\n"
            f"\tbest: {self.x_best} ({self.f_x_best})"
            f")"
        )

    # endregion

    # region attributes
    @property
    def history(self) -> History:
        """History of accepted and rejected positions."""
        return self.annealer.history

    @property
    def parameters(self) -> ASAParameters:
        """Parameters used to run the ASA algorithm."""
        return self.annealer.parameters

    @property
    def x_best(self) -> ast.FLOAT_ARR:
        """Get the best position vector."""
        return self.annealer.x_best

    @property
    def f_x_best(self) -> float:
        """Get the objective value at the best position vector."""
        return self.annealer.f_x_best

    @property
    def reason_for_exit(self) -> StopCondition:
        return self.annealer.reason_for_exit

    # endregion
