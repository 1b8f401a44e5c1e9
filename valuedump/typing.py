"""
Declared type (hint) helpers for the renderer.

A hint is the declared type of a value slot: a dataclass or class annotation, or a
parameter of a declared generic container. Hints drive three renderer decisions:

    - indirections (Optional[X], X | None, weakref.ref[X]) render with the '*' marker
    - polymorphic slots (Any, object, TypeVar, multi-member unions) render with the '○' marker
    - the self-type guard compares a field hint, stripped of indirections, with its owner type

String annotations and forward references are supported on a best-effort basis,
they are compared by name.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import functools
import re
import types
import typing
import weakref

from typing import Any, ForwardRef, Literal, Self, TypeVar
from typing import get_type_hints, get_origin, get_args

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import class_name

# Public API -----------------------------------------------------------------------------------------------------------
__all__ = [
    "UNION_TYPES",
    "bind_self",
    "container_args",
    "deref_hint",
    "is_indirection",
    "is_optional",
    "is_polymorphic",
    "item_hint",
    "record_hints",
    "same_base_type",
    "strip_indirection",
    "type_label",
    "value_hint",
]

# Constants ------------------------------------------------------------------------------------------------------------

UNION_TYPES = (typing.Union, types.UnionType)

NoneType = type(None)

_REF_PREFIXES = ("weakref.ref[", "weakref.ReferenceType[", "ref[", "ReferenceType[")

_SELF_NAME = re.compile(r"\bSelf\b")


# Methods --------------------------------------------------------------------------------------------------------------

def is_indirection(hint: Any) -> bool:
    """
    Check whether a hint declares an owns-or-nil reference to another type.

    Examples:
        >>> is_indirection(int | None)
        True
        >>> is_indirection(weakref.ref[int])
        True
        >>> is_indirection(int)
        False
    """
    hint = _normalize(hint)
    if isinstance(hint, str):
        return _split_forward(hint)[1] is not None
    return is_optional(hint) or get_origin(hint) is weakref.ReferenceType


def is_optional(hint: Any) -> bool:
    """
    Check whether the outermost indirection of a hint is a union with None.

    Examples:
        >>> is_optional(Optional[weakref.ref[int]])
        True
        >>> is_optional(weakref.ref[int | None])
        False
    """
    hint = _normalize(hint)
    if isinstance(hint, str):
        return _split_forward(hint)[1] == "optional"
    if get_origin(hint) in UNION_TYPES:
        args = get_args(hint)
        return NoneType in args and len(args) > 1
    return False


def deref_hint(hint: Any) -> Any:
    """
    Remove one indirection layer from a hint.

    Optional[int] -> int, weakref.ref[Node] -> Node, int | str | None -> int | str.
    Hints which are not indirections are returned unchanged.
    """
    hint = _normalize(hint)
    if isinstance(hint, str):
        return _split_forward(hint)[0]
    if get_origin(hint) in UNION_TYPES:
        rest = tuple(_normalize(a) for a in get_args(hint) if a is not NoneType)
        if len(rest) == 1:
            return rest[0]
        if rest and all(not isinstance(a, str) for a in rest):
            return typing.Union[rest]
        return " | ".join(a if isinstance(a, str) else type_label(a) for a in rest)
    if get_origin(hint) is weakref.ReferenceType:
        args = get_args(hint)
        return _normalize(args[0]) if args else None
    return hint


def strip_indirection(hint: Any) -> Any:
    """Remove every indirection layer from a hint."""
    hint = _normalize(hint)
    while hint is not None and is_indirection(hint):
        hint = deref_hint(hint)
    return hint


def is_polymorphic(hint: Any) -> bool:
    """
    Check whether a hint admits values of statically unknown concrete type.

    Any, object, TypeVars and unions of two or more non-None members are polymorphic.
    Optional[X | Y] is an indirection first; its dereferenced hint is polymorphic.
    """
    hint = _normalize(hint)
    if hint is Any or hint is object or isinstance(hint, TypeVar):
        return True
    if isinstance(hint, str):
        parts = _split_top(hint, "|")
        return hint.strip() in ("Any", "typing.Any", "object") or (len(parts) > 1 and "None" not in parts)
    if get_origin(hint) in UNION_TYPES:
        args = get_args(hint)
        return NoneType not in args and len(args) > 1
    return False


def same_base_type(hint: Any, owner: Any) -> bool:
    """
    Check if a declared hint refers to the owner type once indirections are stripped.

    This is a type-level check: it compares declarations, never object identity.
    Unresolved string annotations are compared by name. typing.Self refers to the
    owner, and a parametrized generic (Node[T]) matches its plain owner class.

    Examples:
        >>> class Node: ...
        >>> same_base_type(Node | None, Node)
        True
        >>> same_base_type("Node | None", Node)
        True
        >>> same_base_type(Self | None, Node)
        True
        >>> same_base_type(list[Node], Node)
        False
    """
    if hint is None or owner is None:
        return False
    base = strip_indirection(hint)
    target = strip_indirection(owner)
    if base is Self or (isinstance(base, str) and _hint_name(base) == "Self"):
        return True
    if isinstance(target, type) and get_origin(target) is None:
        base = _generic_origin(base)
    if isinstance(base, str) or isinstance(target, str):
        return _hint_name(base) == _hint_name(target)
    try:
        return bool(base == target)
    except Exception:
        return base is target


def bind_self(hint: Any, owner: type) -> Any:
    """
    Replace typing.Self in a hint with the owner class.

    Unions, weak references and generic parameters are rebuilt with the bound
    members; string annotations are rewritten by name.

    Examples:
        >>> class Node: ...
        >>> bind_self(Self | None, Node) == typing.Optional[Node]
        True
        >>> bind_self("Self | None", Node)
        'Node | None'
    """
    hint = _normalize(hint)
    if hint is Self:
        return owner
    if isinstance(hint, str):
        return _SELF_NAME.sub(owner.__name__, hint)

    origin, args = get_origin(hint), get_args(hint)
    if not args or origin is Literal:
        return hint
    bound = tuple(bind_self(a, owner) for a in args)
    if all(b is a for a, b in zip(bound, args)):
        return hint
    if origin in UNION_TYPES:
        return typing.Union[bound]
    try:
        return origin[bound if len(bound) > 1 else bound[0]]
    except TypeError:
        return hint


@functools.lru_cache(maxsize=512)
def record_hints(cls: type) -> dict[str, Any]:
    """
    Return declared field hints of a record class, resolving forward references if possible.

    Falls back to raw annotations collected over the MRO when resolution fails,
    e.g. for classes referring to names which are not importable at module level.
    """
    try:
        return get_type_hints(cls)
    except Exception:
        hints = {}
        for klass in reversed(cls.__mro__):
            try:
                hints.update(getattr(klass, "__annotations__", None) or {})
            except Exception:
                continue
        return {name: _normalize(hint) for name, hint in hints.items()}


def container_args(hint: Any, cls: type) -> tuple[Any, tuple]:
    """
    Return (origin, args) of the generic declaration behind a container value.

    The declared hint wins (list[int] -> (list, (int,))). Without one, parametrized
    bases of the container class are searched, so `class Registry(dict[str, "Registry"])`
    yields (dict, (str, "Registry")). Returns (None, ()) if nothing is declared.
    """
    hint = _normalize(hint)
    if hint is not None and not isinstance(hint, str):
        args = get_args(hint)
        if args:
            return get_origin(hint), tuple(_normalize(a) for a in args)

    for klass in getattr(cls, "__mro__", ()):
        for base in klass.__dict__.get("__orig_bases__", ()):
            origin, args = get_origin(base), get_args(base)
            if args and isinstance(origin, type):
                return origin, tuple(_normalize(a) for a in args)
    return None, ()


def item_hint(origin: Any, args: tuple, index: int) -> Any:
    """
    Return the element hint at index for a declared sequence or set.

    tuple[int, str] is positional, tuple[int, ...] and list[int] are homogeneous.
    """
    if not args:
        return None
    if len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    if origin is tuple:
        return args[index] if index < len(args) else None
    return args[0]


def value_hint(origin: Any, args: tuple) -> Any:
    """Return the value hint of a declared mapping, e.g. dict[str, int] -> int."""
    if len(args) >= 2:
        return args[-1]
    return None


def type_label(hint: Any, fully_qualified: bool = False) -> str:
    """
    Format a declared type for display in rendered text.

    Indirections are shown with a leading '*', generics with their parameters.

    Examples:
        >>> type_label(int | None)
        '*int'
        >>> type_label(dict[str, list[int]])
        'dict[str, list[int]]'
        >>> type_label(int | str)
        'int | str'
    """
    hint = _normalize(hint)
    if hint is None:
        return "nil"
    if hint is Ellipsis:
        return "..."
    if isinstance(hint, str):
        name, layer = _split_forward(hint)
        return f"*{type_label(name, fully_qualified)}" if layer else name
    if hint is Any:
        return "Any"
    if isinstance(hint, TypeVar):
        return hint.__name__
    if is_indirection(hint):
        return f"*{type_label(deref_hint(hint), fully_qualified)}"

    origin = get_origin(hint)
    if origin in UNION_TYPES:
        return " | ".join(type_label(a, fully_qualified) for a in get_args(hint))
    if origin is not None:
        params = ", ".join(type_label(a, fully_qualified) for a in get_args(hint))
        return f"{type_label(origin, fully_qualified)}[{params}]"
    if isinstance(hint, type):
        return class_name(hint, fully_qualified=fully_qualified)
    return str(hint).removeprefix("typing.")


# Private Methods ------------------------------------------------------------------------------------------------------

def _normalize(hint: Any) -> Any:
    """Turn ForwardRef objects into plain strings."""
    if isinstance(hint, ForwardRef):
        return hint.__forward_arg__
    return hint


def _generic_origin(hint: Any) -> Any:
    """Unparametrized class of a generic hint: Node[T] -> Node, "Node[T]" -> "Node"."""
    if isinstance(hint, str):
        return hint.partition("[")[0].strip()
    return get_origin(hint) or hint


def _hint_name(hint: Any) -> str:
    """Bare name of a hint for by-name comparison of forward references."""
    if isinstance(hint, str):
        return hint.strip().strip("'\"").rpartition(".")[2]
    if isinstance(hint, type):
        return hint.__name__
    return str(hint)


def _split_forward(hint: str) -> tuple[str, str | None]:
    """
    Split one indirection layer off a string annotation.

    Returns (inner, "optional") for "Optional[X]" and "X | None", (inner, "ref") for
    "weakref.ref[X]", otherwise (hint, None).
    """
    s = hint.strip().strip("'\"").strip()
    parts = _split_top(s, "|")
    if len(parts) > 1:
        if "None" in parts:
            return " | ".join(p for p in parts if p != "None"), "optional"
        return s, None
    if s.startswith(("Optional[", "typing.Optional[")) and s.endswith("]"):
        return s[s.index("[") + 1:-1].strip(), "optional"
    for prefix in _REF_PREFIXES:
        if s.startswith(prefix) and s.endswith("]"):
            return s[len(prefix):-1].strip(), "ref"
    return s, None


def _split_top(s: str, sep: str) -> list[str]:
    """Split s by sep outside of square brackets, stripping each part."""
    parts, depth, current = [], 0, []
    for ch in s:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts
