from __future__ import annotations

from retarity.analysis.type_model import (
    BasicType,
    MethodSignature,
    NamedType,
    ResolvedType,
    STRING_TYPE,
)

ERROR_TYPE_NAME = "error"
ERROR_METHOD_NAME = "Error"


def is_string_like(resolved: ResolvedType) -> bool:
    if isinstance(resolved, BasicType):
        return resolved == STRING_TYPE
    if isinstance(resolved, NamedType):
        return resolved.underlying == STRING_TYPE
    return False


def is_error_method(method: MethodSignature) -> bool:
    if method.name != ERROR_METHOD_NAME:
        return False
    if method.params:
        return False
    if len(method.results) != 1:
        return False
    return is_string_like(method.results[0])


def is_error_like(resolved: ResolvedType) -> bool:
    """Report whether ``resolved`` is the error type or shaped like one.

    Only named types qualify: the predeclared ``error`` by name, any other
    by carrying an ``Error()`` method with no parameters and a single
    string result. Every method named ``Error`` is considered.
    """
    if not isinstance(resolved, NamedType):
        return False
    if resolved.name == ERROR_TYPE_NAME:
        return True
    return any(is_error_method(method) for method in resolved.methods_named(ERROR_METHOD_NAME))
