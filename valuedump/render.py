"""
ValueDump Renderer

Depth-limited recursive rendering of arbitrary Python values into indented,
human-readable text:

    >>> print(render([1, 2, 3], depth=2), end="")
    list{
    • int{1}
    • int{2}
    • int{3}}

Every value renders as <Type>{body}. Special whole-value forms are nil{nil},
<Type>{nil}, <Type>{invalid}, <Type>{<zero value>} and ' ...' once the depth is
exhausted. Pointer-like slots (Optional[X], weakref.ref) add a '*' marker, polymorphic
slots (Any, object, unions) add a '○' marker, and scalars reached through such
markers carry one '&' per marker.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import warnings

from dataclasses import dataclass, field, replace as dataclasses_replace
from typing import Any, Iterable, Literal

# Local ----------------------------------------------------------------------------------------------------------------
from .kinds import Field, Kind, ValueHandle
from .typing import same_base_type
from .utils import class_name, fmt_type

# Public API -----------------------------------------------------------------------------------------------------------
__all__ = ["DEFAULT_OPTIONS", "RenderOptions", "render", "render_inline"]

# Constants ------------------------------------------------------------------------------------------------------------

DEPTH_EXHAUSTED = " ..."

POINTER_MARKER = "*"
BOX_MARKER = "○"
REFERENCE_MARKER = "&"


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderOptions:
    """
    Rendering configuration, passed explicitly to every top-level call.

    Attributes:
        depth: Depth used when a call does not specify one explicitly.
        newline_at_end: Append a line break after indented (non-inline) output.
        indent: Marker prepended once per nesting level in indented output.
        on_error: What to do on values which cannot be read or formatted:
            - "skip" (default): render an {invalid} placeholder silently
            - "warn": render the placeholder and issue a RuntimeWarning
        fully_qualified_names: Use module.Class labels for non-builtin classes.

    Examples:
        >>> opts = RenderOptions(depth=5, newline_at_end=False)
        >>> opts.merge(indent="  ").indent
        '  '
    """
    depth: int = 3
    newline_at_end: bool = True
    indent: str = "• "
    on_error: Literal["skip", "warn"] = "skip"
    fully_qualified_names: bool = False

    def __post_init__(self) -> None:
        """Validate option types and values."""
        if isinstance(self.depth, bool) or not isinstance(self.depth, int):
            raise TypeError(f"depth must be an int, but found {fmt_type(self.depth)}")
        if not isinstance(self.newline_at_end, bool):
            raise TypeError(f"newline_at_end must be a bool, but found {fmt_type(self.newline_at_end)}")
        if not isinstance(self.indent, str):
            raise TypeError(f"indent must be a str, but found {fmt_type(self.indent)}")
        if self.on_error not in ("skip", "warn"):
            raise ValueError(f"on_error must be 'skip' or 'warn', but found {self.on_error!r}")

    @classmethod
    def compact(cls) -> "RenderOptions":
        """Shallow rendering without a trailing line break, suited for log lines."""
        return cls(depth=1, newline_at_end=False)

    @classmethod
    def debug(cls) -> "RenderOptions":
        """Deep rendering which warns about values that cannot be formatted."""
        return cls(depth=5, on_error="warn")

    def merge(self, **kwargs: Any) -> "RenderOptions":
        """Return a copy with the given attributes replaced."""
        return dataclasses_replace(self, **kwargs)


DEFAULT_OPTIONS = RenderOptions()


@dataclass(frozen=True)
class _RenderContext:
    """Settings shared by all nodes of one top-level render call."""
    options: RenderOptions
    excluded: frozenset[str] = field(default_factory=frozenset)
    inline: bool = False


# Methods --------------------------------------------------------------------------------------------------------------

def render(value: Any,
           depth: int | None = None,
           excluded: Iterable[str] | str = (),
           *,
           options: RenderOptions | None = None,
           ) -> str:
    """
    Render a value as indented multi-line text.

    Args:
        value: Any Python value.
        depth: Maximum recursion depth; None uses options.depth. Depth 0 renders only the
               top-level shell, a negative depth renders ' ...' only.
        excluded: Record field names to omit. Mapping entries with these string keys are
                  kept but their values are cut to ' ...'.
        options: Rendering configuration, DEFAULT_OPTIONS if None.

    Returns:
        The rendered text, with a trailing line break if options.newline_at_end.

    Raises:
        TypeError: If depth, excluded or options have wrong types.

    Examples:
        >>> render({"a": 1}, depth=1, options=RenderOptions(newline_at_end=False))
        'dict{\\n• a:int{1}}'
    """
    opt = _resolve_options(options)
    ctx = _RenderContext(options=opt, excluded=_resolve_excluded(excluded), inline=False)
    out = _render(ValueHandle(value), _resolve_depth(depth, opt), 0, "", False, ctx)
    if opt.newline_at_end:
        out += "\n"
    return out


def render_inline(value: Any,
                  depth: int | None = None,
                  excluded: Iterable[str] | str = (),
                  *,
                  options: RenderOptions | None = None,
                  ) -> str:
    """
    Render a value as a single line.

    Same traversal as render() without indent markers; every line break, including
    those inside data text, is collapsed to a single space. No trailing line break.

    Examples:
        >>> render_inline([1, 2], depth=1)
        'list{int{1}int{2}}'
    """
    opt = _resolve_options(options)
    ctx = _RenderContext(options=opt, excluded=_resolve_excluded(excluded), inline=True)
    out = _render(ValueHandle(value), _resolve_depth(depth, opt), 0, "", False, ctx)
    return out.replace("\n", " ")


# Private Methods ------------------------------------------------------------------------------------------------------

def _resolve_options(options: RenderOptions | None) -> RenderOptions:
    if options is None:
        return DEFAULT_OPTIONS
    if not isinstance(options, RenderOptions):
        raise TypeError(f"options must be a RenderOptions instance, but found {fmt_type(options)}")
    return options


def _resolve_depth(depth: int | None, opt: RenderOptions) -> int:
    if depth is None:
        return opt.depth
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise TypeError(f"depth must be an int or None, but found {fmt_type(depth)}")
    return depth


def _resolve_excluded(excluded: Iterable[str] | str) -> frozenset[str]:
    if excluded is None:
        return frozenset()
    if isinstance(excluded, str):
        return frozenset((excluded,))
    names = frozenset(excluded)
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"excluded names must be str, but found {fmt_type(name)}")
    return names


def _render(handle: ValueHandle,
            depth: int,
            ptr_count: int,
            indent: str,
            disable_indent: bool,
            ctx: _RenderContext,
            ) -> str:
    """
    Render one node.

    Args:
        handle: Value and its declared type.
        depth: Remaining depth budget, negative means stop.
        ptr_count: Number of '*'/'○' markers crossed since the last composite.
        indent: Current indent prefix.
        disable_indent: Do not prepend the indent, the node continues a line.
        ctx: Settings of the top-level call.
    """
    if depth < 0:
        return DEPTH_EXHAUSTED

    out = _render_node(handle, depth, ptr_count, indent, ctx)
    if disable_indent or ctx.inline:
        return out
    return indent + out


def _render_node(handle: ValueHandle, depth: int, ptr_count: int, indent: str, ctx: _RenderContext) -> str:
    """Format a node by its kind, without the leading indent."""
    kind = handle.kind()

    if kind is Kind.NIL:
        return "nil{nil}"

    label = handle.label(ctx.options.fully_qualified_names)

    if kind is Kind.ZERO:
        text = _text(handle, ctx)
        return f"{label}{{{text if text is not None else 'invalid'}}}"
    if kind is Kind.INVALID:
        return f"{label}{{invalid}}"
    if kind is Kind.NIL_REF:
        return f"{label}{{nil}}"
    if kind is Kind.POINTER:
        return POINTER_MARKER + _render(handle.deref(), depth, ptr_count + 1, indent, True, ctx)
    if kind is Kind.BOX:
        return BOX_MARKER + _render(handle.unbox(), depth, ptr_count + 1, indent, True, ctx)
    if kind is Kind.SEQUENCE:
        return _render_sequence(handle, label, depth, indent, ctx)
    if kind is Kind.RECORD:
        return _render_record(handle, label, depth, indent, ctx)
    if kind is Kind.MAPPING:
        return _render_mapping(handle, label, depth, indent, ctx)

    text = _text(handle, ctx)
    if text is None:
        return f"{label}{{invalid}}"
    return f"{label}{{{REFERENCE_MARKER * ptr_count}{text}}}"


def _render_sequence(handle: ValueHandle, label: str, depth: int, indent: str, ctx: _RenderContext) -> str:
    elements = _collect(handle.elements, handle, ctx)
    if elements is None:
        return f"{label}{{invalid}}"

    child_indent = indent + ctx.options.indent
    out = f"{label}{{"
    for element in elements:
        if not ctx.inline and depth > 0:
            out += "\n"
        out += _render(element, depth - 1, 0, child_indent, False, ctx)
    return out + "}"


def _render_record(handle: ValueHandle, label: str, depth: int, indent: str, ctx: _RenderContext) -> str:
    fields: list[Field] | None = _collect(handle.fields, handle, ctx)
    if fields is None:
        return f"{label}{{invalid}}"

    owner = type(handle.value)
    child_indent = indent + ctx.options.indent
    out = f"{label}{{"
    for f in fields:
        if f.name in ctx.excluded:
            continue

        out += _separator(depth, child_indent, ctx)
        if f.error is not None:
            _warn(ctx, f"Failed to read {class_name(owner)}.{f.name}", f.error)
        if f.accessible or f.error is not None:
            out += f"{f.name}:" + _render(f.handle, _child_depth(f.hint, owner, depth), 0, child_indent, True, ctx)
        else:
            text = _text(f.handle, ctx)
            out += f"{f.name}:{text if text is not None else 'invalid'}"
    return out + "}"


def _render_mapping(handle: ValueHandle, label: str, depth: int, indent: str, ctx: _RenderContext) -> str:
    entries = _collect(handle.entries, handle, ctx)
    if entries is None:
        return f"{label}{{invalid}}"

    owner = handle.hint if handle.hint is not None else type(handle.value)
    child_indent = indent + ctx.options.indent
    out = f"{label}{{"
    for key, entry in entries:
        entry_depth = _child_depth(entry.hint, owner, depth)
        # Excluded keys stay listed, only their values are cut
        if isinstance(key, str) and key in ctx.excluded:
            entry_depth = -1

        key_text = _text(ValueHandle(key), ctx)
        out += _separator(depth, child_indent, ctx)
        out += f"{key_text if key_text is not None else 'invalid'}:"
        out += _render(entry, entry_depth, 0, child_indent, True, ctx)
    return out + "}"


def _child_depth(hint: Any, owner: Any, depth: int) -> int:
    """
    Depth budget of a field or entry value.

    A value declared with the owner's own type shows its shell only (depth 0),
    so recursive structures stop after one level whatever depth is left.
    """
    if same_base_type(hint, owner):
        return min(depth - 1, 0)
    return depth - 1


def _separator(depth: int, child_indent: str, ctx: _RenderContext) -> str:
    """Separator in front of a record field or mapping entry."""
    if ctx.inline:
        return "\n"
    if depth > 0:
        return "\n" + child_indent
    return " "


def _collect(produce, handle: ValueHandle, ctx: _RenderContext) -> list | None:
    """Materialize children of a composite, None if iterating the value fails."""
    try:
        return list(produce())
    except RecursionError:
        raise
    except Exception as e:
        _warn(ctx, f"Failed to iterate {fmt_type(handle.value)}", e)
        return None


def _text(handle: ValueHandle, ctx: _RenderContext) -> str | None:
    """Default text of a value, None if its __str__ fails."""
    try:
        return handle.text()
    except RecursionError:
        raise
    except Exception as e:
        _warn(ctx, f"Failed to format {fmt_type(handle.value)}", e)
        return None


def _warn(ctx: _RenderContext, message: str, exc: BaseException) -> None:
    if ctx.options.on_error == "warn":
        warnings.warn(f"{message}: {type(exc).__name__}: {exc}", RuntimeWarning, stacklevel=3)
