"""
minirb Ruby Subset Evaluator

A tree walking evaluator for a small class based language with single
inheritance, singleton methods, integers and fixed size arrays.
"""

__version__ = "0.1.0"


from ._error import *
from ._node import *
from ._object import *
from ._builtin import *
from ._space import *
from ._context import *
from ._eval import *
from ._parse import *
from ._interp import *
