"""
ValueDump convenience layer.

Two composable stages sit on top of the renderer: dump_text() renders a value into a
RenderedText, and frame_lines() splits text into lines lazily. The value_dump()
family forwards those lines to a sink - any callable accepting text parts, such as
print or a logger method - and dump() / dump_depth() print one or more values to
standard output.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .render import RenderOptions, _resolve_options, render, render_inline
from .utils import fmt_type

# Public API -----------------------------------------------------------------------------------------------------------
__all__ = [
    "RenderedText",
    "dump",
    "dump_depth",
    "dump_text",
    "frame_lines",
    "value_dump",
    "value_dump_inline",
]

Sink = Callable[..., Any]

ERROR_PREFIX = "ValueDump error:"


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderedText:
    """
    Complete rendered text plus a lazy, restartable view of its lines.

    Iterating a RenderedText yields its lines with line breaks kept; every iteration
    starts over from the first line.

    Examples:
        >>> rt = RenderedText("list{\\n• int{1}}\\n")
        >>> list(rt)
        ['list{\\n', '• int{1}}\\n']
        >>> list(rt) == list(rt.lines())
        True
    """
    text: str

    def lines(self) -> Iterator[str]:
        """Lines of the text, each keeping its trailing line break."""
        return frame_lines(self.text)

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def __str__(self) -> str:
        return self.text


# Methods --------------------------------------------------------------------------------------------------------------

def frame_lines(text: str) -> Iterator[str]:
    """
    Lazily split text into lines on '\\n' only, keeping line breaks.

    Other line boundaries recognized by str.splitlines() (\\r, \\x0b, \\u2028...) are
    treated as data. A trailing empty segment is not yielded.

    Examples:
        >>> list(frame_lines("a\\nb"))
        ['a\\n', 'b']
        >>> list(frame_lines(""))
        []
    """
    start = 0
    while start < len(text):
        end = text.find("\n", start)
        if end == -1:
            yield text[start:]
            return
        yield text[start:end + 1]
        start = end + 1


def dump_text(value: Any,
              depth: int | None = None,
              excluded: Iterable[str] | str = (),
              *,
              options: RenderOptions | None = None,
              ) -> RenderedText:
    """Render a value as indented text, see render() for arguments."""
    return RenderedText(render(value, depth, excluded, options=options))


def value_dump(value: Any,
               depth: int | None = None,
               sink: Sink | None = None,
               excluded: Iterable[str] | str = (),
               *,
               options: RenderOptions | None = None,
               ) -> str:
    """
    Render a value as indented text and return it or forward it to a sink.

    Args:
        value: Any Python value.
        depth: Maximum recursion depth; None uses options.depth.
        sink: Callable receiving the text line by line, line breaks kept. If None,
              the text is returned instead.
        excluded: Field names to omit, see render().
        options: Rendering configuration, DEFAULT_OPTIONS if None.

    Returns:
        The rendered text, or an empty string when a sink consumed it.

    Notes:
        - If rendering fails with RecursionError (very deep data with a large depth),
          a single line 'ValueDump error: <cause>' is sent to the sink instead and the
          value is skipped. Without a sink the error propagates.
        - Exceptions raised by the sink itself propagate to the caller.
    """
    if sink is None:
        return render(value, depth, excluded, options=options)

    _validate_sink(sink)
    _forward(lambda: dump_text(value, depth, excluded, options=options).lines(), sink)
    return ""


def value_dump_inline(value: Any,
                      depth: int | None = None,
                      sink: Sink | None = None,
                      excluded: Iterable[str] | str = (),
                      *,
                      options: RenderOptions | None = None,
                      ) -> str:
    """
    Render a value as a single line and return it or forward it to a sink in one call.

    Same failure behavior as value_dump().
    """
    if sink is None:
        return render_inline(value, depth, excluded, options=options)

    _validate_sink(sink)
    _forward(lambda: [render_inline(value, depth, excluded, options=options)], sink)
    return ""


def dump(*values: Any, options: RenderOptions | None = None, sink: Sink | None = None) -> None:
    """
    Print values one after another at the default depth.

    Args:
        values: Values to render.
        options: Rendering configuration; options.depth is the depth used.
        sink: Output callable, standard output if None.

    Examples:
        >>> dump(0, "")
        int{0}
        str{}
    """
    opt = _resolve_options(options)
    dump_depth(opt.depth, *values, options=opt, sink=sink)


def dump_depth(depth: int, *values: Any, options: RenderOptions | None = None, sink: Sink | None = None) -> None:
    """
    Print values one after another at an explicit depth.

    A value failing to render reports an error line and does not stop the values after it.
    """
    out = sink or _print_sink
    for value in values:
        value_dump(value, depth, out, options=options)


# Private Methods ------------------------------------------------------------------------------------------------------

def _forward(produce: Callable[[], Iterable[str]], sink: Sink) -> None:
    """Render first, then hand lines to the sink; render failures become one error line."""
    try:
        lines = list(produce())
    except RecursionError as e:
        sink(f"{ERROR_PREFIX} {e}\n")
        return
    for line in lines:
        sink(line)


def _print_sink(*parts: Any) -> None:
    print(*parts, sep="", end="")


def _validate_sink(sink: Any) -> None:
    if not callable(sink):
        raise TypeError(f"sink must be callable or None, but found {fmt_type(sink)}")
