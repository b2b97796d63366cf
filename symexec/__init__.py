"""SYMEXEC — DNF path conditions for static symbolic execution"""

__version__ = "0.1.0"

from symexec.errors import AnalysisError, PreconditionViolation, TraceError
from symexec.values import Op, SymbolicVariable, Value, ValueKind, Expression
from symexec.pool import ExpressionPool
from symexec.terms import Term, TermKind, negate
from symexec.path_condition import Conjunction, PathCondition
from symexec.state import State
from symexec.config import RevisitPolicy, SymexecConfig, load_config
from symexec.scheduler import Scheduler, StateStore, Worklist
from symexec.session import ExplorationSession
from symexec.analysis import Range, find_dependencies, get_all_ranges, get_ranges

__all__ = [
    "AnalysisError", "PreconditionViolation", "TraceError",
    "Op", "SymbolicVariable", "Value", "ValueKind", "Expression",
    "ExpressionPool",
    "Term", "TermKind", "negate",
    "Conjunction", "PathCondition",
    "State",
    "RevisitPolicy", "SymexecConfig", "load_config",
    "Scheduler", "StateStore", "Worklist",
    "ExplorationSession",
    "Range", "find_dependencies", "get_all_ranges", "get_ranges",
]
