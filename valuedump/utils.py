"""
ValueDump utilities shared across the package.

Contains naming helpers used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any


# Methods --------------------------------------------------------------------------------------------------------------


def class_name(
    obj: Any,
    fully_qualified: bool = False,
    fully_qualified_builtins: bool = False,
) -> str:
    """
    Get the class name of an object or a class.

    Returns class name whether given an instance or the class itself.
    For example, both `class_name(10)` and `class_name(int)` return 'int'.

    Parameters:
        obj (Any): An object or a class.
        fully_qualified (bool): If true, returns the fully qualified name for user objects or classes.
        fully_qualified_builtins (bool): If true, returns the fully qualified name for builtin objects or classes.

    Returns:
        str: The class name.

    Examples:
        >>> class_name(10)
        'int'
        >>> class_name(10, fully_qualified_builtins=True)
        'builtins.int'
        >>> class Node: ...
        >>> class_name(Node(), fully_qualified=True)
        '__main__.Node'
    """
    cls = obj if isinstance(obj, type) else obj.__class__

    name = getattr(cls, "__name__", None) or repr(cls)
    module = getattr(cls, "__module__", None)

    if module == "builtins":
        return f"{module}.{name}" if fully_qualified_builtins else name

    if fully_qualified and module:
        return f"{module}.{getattr(cls, '__qualname__', name)}"
    return name


def fmt_type(obj: Any, fully_qualified: bool = False) -> str:
    """
    Format type information of an object or a type for exception messages.

    Examples:
        >>> fmt_type(42)
        '<int>'
        >>> fmt_type(int)
        '<int>'
    """
    return f"<{class_name(obj, fully_qualified=fully_qualified)}>"

