"""dotsub - decidable subtyping for a dependent object calculus."""

from dotsub.config import DEFAULT_CONFIG, CheckerConfig
from dotsub.environment import Env
from dotsub.errors import (
    AbortError,
    BudgetExceededError,
    DotError,
    IllScopedTypeError,
    InvalidDerivationError,
    NarrowingUnsupportedError,
    NoDerivationError,
    NotExpandableError,
    RealizabilityViolationError,
    RuleFailure,
    ShapeMismatchError,
    SubtypeResult,
    UnboundVariableError,
)
from dotsub.subtyping import (
    Derivation,
    Mode,
    SubtypeChecker,
    check_subtype,
    derive_subtype,
    eliminate,
    expand,
    is_subtype,
    narrow,
    normalize,
    transitivity,
    verify,
)
from dotsub.syntax import (
    And,
    Bind,
    Boolean,
    Bottom,
    BoundSelection,
    Function,
    Member,
    NoMembers,
    Selection,
    Top,
    Type,
    closed_at,
    format_type,
    free_vars,
    open_type,
)

__all__ = [
    # Errors
    "AbortError",
    # Types
    "And",
    "Bind",
    "Boolean",
    "Bottom",
    "BoundSelection",
    "BudgetExceededError",
    # Configuration
    "CheckerConfig",
    "DEFAULT_CONFIG",
    # Derivations
    "Derivation",
    "DotError",
    # Environment
    "Env",
    "Function",
    "IllScopedTypeError",
    "InvalidDerivationError",
    "Member",
    "Mode",
    "NarrowingUnsupportedError",
    "NoDerivationError",
    "NoMembers",
    "NotExpandableError",
    "RealizabilityViolationError",
    "RuleFailure",
    "Selection",
    "ShapeMismatchError",
    # Subtyping
    "SubtypeChecker",
    "SubtypeResult",
    "Top",
    "Type",
    "UnboundVariableError",
    "check_subtype",
    # Binder operations
    "closed_at",
    "derive_subtype",
    "eliminate",
    "expand",
    "format_type",
    "free_vars",
    "is_subtype",
    "narrow",
    "normalize",
    "open_type",
    "transitivity",
    "verify",
]
