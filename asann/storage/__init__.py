# coding: utf-8

# ====================================================
# imports
from .parameters import ASAParameters, check_asa_parameters, check_bounds, check_x0
from .history import History
from .result import Result

# ====================================================
# code

__all__ = ['ASAParameters',
           'check_asa_parameters', 'check_bounds', 'check_x0',
           'History',
           'Result']
