"""Resolution of the named constants bound into predicate expressions."""
import keyword
import re
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import ConfigIssue, ErrorCode

_IDENTIFIER = re.compile(r"[A-Za-z_]\w*")

# Words the expression parser treats as operators or literals.
RESERVED_NAMES = frozenset(
    {"and", "or", "not", "eq", "ne", "lt", "gt", "le", "ge", "div", "mod", "empty",
     "true", "false", "null"}
)

_ALLOWED_TYPES = (bool, int, float, str, list, dict)


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    return value


def _constant_problem(name: Any, value: Any) -> Optional[str]:
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        return "name must be an identifier (letters, digits, underscore)"
    if name in RESERVED_NAMES or keyword.iskeyword(name):
        return "name is a reserved word"
    if value is None:
        return "value must not be null"
    if not isinstance(value, _ALLOWED_TYPES):
        return f"unsupported value type '{type(value).__name__}'"
    return None


def resolve_constants(
    constants: Optional[Mapping[str, Any]],
    issue_factory,
    group: str,
    field: str,
    issues: list[ConfigIssue],
) -> Mapping[str, Any]:
    """Validate constants and freeze them into a read-only mapping.

    Nested lists become tuples and nested dicts become read-only mappings.

    Every invalid constant adds an ``INVALID_CONSTANT`` issue and is left out
    of the result.

    Args:
        constants: Constant name to value mapping (None means no constants)
        issue_factory: Callable creating issues, usually
            ``StageContext.create_config_issue``
        group: Config group reported in issues
        field: Config field reported in issues
        issues: List that issues are appended to

    Returns:
        Read-only mapping of the valid constants
    """
    resolved = {}
    for name, value in (constants or {}).items():
        problem = _constant_problem(name, value)
        if problem is not None:
            issues.append(issue_factory(group, field, ErrorCode.INVALID_CONSTANT, name, problem))
            continue
        resolved[name] = _freeze(value)
    return MappingProxyType(resolved)
