#
# ValueDump - Render Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import collections
import collections.abc as abc
import dataclasses
import gc
import warnings
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, NamedTuple, Optional, Self, TypeVar

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest
from frozendict import frozendict

# Local ----------------------------------------------------------------------------------------------------------------
from valuedump.render import DEFAULT_OPTIONS, RenderOptions, render, render_inline


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass
class Rec:
    Name: str = ""
    Self: "Rec | None" = None


@dataclass
class Node:
    val: int
    next: "Node | None" = None


T = TypeVar("T")


@dataclass
class SNode:
    val: int
    next: Self | None = None


@dataclass
class GNode(Generic[T]):
    val: T
    next: "GNode[T] | None" = None


@dataclass
class WNode:
    val: int
    parent: Optional[weakref.ref["WNode"]] = None


@dataclass
class Point:
    x: int
    y: int


@dataclass
class Holder:
    count: int | None = None
    anything: Any = None


@dataclass
class Slot:
    value: Optional[Any] = None


@dataclass
class Secret:
    name: str
    _token: str = "abc"


@dataclass
class Coords:
    pair: tuple[int, str | None]


@dataclass
class Sparse:
    items: list[int | None]


@dataclass
class Envelope:
    payload: dict[str, Any]


@dataclass
class Config:
    name: str
    limits: dict[str, int] = field(default_factory=dict)
    parent: "Config | None" = None


@dataclass
class Bag:
    items: list = field(default_factory=list)
    tags: dict = field(default_factory=dict)


class Pair(NamedTuple):
    left: int
    right: str


class Plain:
    def __init__(self, a, b):
        self.a = a
        self.b = b


class Loop:
    def __init__(self):
        self.me = self
        self.n = 1


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self):
        self.a = 1


class BrokenStr:
    __slots__ = ()

    def __str__(self):
        raise ValueError("boom")


class BrokenSeq(abc.Sequence):
    def __len__(self):
        return 1

    def __getitem__(self, index):
        raise RuntimeError("boom")


class Registry(dict[str, "Registry"]):
    pass


class Color(Enum):
    RED = 1


# Local Classes & Methods ----------------------------------------------------------------------------------------------

def build_chain(cls, length):
    node = None
    for val in range(length, 0, -1):
        node = cls(val, node)
    return node


# Tests ----------------------------------------------------------------------------------------------------------------

class TestRenderOptions:
    def test_defaults(self):
        """Expose documented defaults."""
        assert DEFAULT_OPTIONS.depth == 3
        assert DEFAULT_OPTIONS.newline_at_end is True
        assert DEFAULT_OPTIONS.indent == "• "
        assert DEFAULT_OPTIONS.on_error == "skip"
        assert DEFAULT_OPTIONS.fully_qualified_names is False

    def test_frozen(self):
        """Reject attribute assignment on shared defaults."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_OPTIONS.depth = 10

    def test_presets(self):
        """Provide compact and debug presets."""
        compact = RenderOptions.compact()
        assert (compact.depth, compact.newline_at_end) == (1, False)
        debug = RenderOptions.debug()
        assert (debug.depth, debug.on_error) == (5, "warn")

    def test_merge_returns_copy(self):
        """Replace attributes on a copy and keep the original intact."""
        opts = RenderOptions()
        merged = opts.merge(depth=7, indent="  ")
        assert (merged.depth, merged.indent) == (7, "  ")
        assert (opts.depth, opts.indent) == (3, "• ")

    @pytest.mark.parametrize(
        "kwargs, error",
        [
            pytest.param({"depth": "3"}, TypeError, id="depth-str"),
            pytest.param({"depth": True}, TypeError, id="depth-bool"),
            pytest.param({"newline_at_end": 1}, TypeError, id="newline-int"),
            pytest.param({"indent": None}, TypeError, id="indent-none"),
            pytest.param({"on_error": "raise"}, ValueError, id="on-error-unknown"),
        ],
    )
    def test_invalid(self, kwargs, error):
        """Validate option types and values on construction."""
        with pytest.raises(error):
            RenderOptions(**kwargs)


class TestRenderArguments:
    @pytest.mark.parametrize(
        "kwargs",
        [
            pytest.param({"depth": 1.5}, id="depth-float"),
            pytest.param({"depth": False}, id="depth-bool"),
            pytest.param({"excluded": [1]}, id="excluded-int"),
            pytest.param({"options": {"depth": 1}}, id="options-dict"),
        ],
    )
    def test_invalid_arguments(self, kwargs):
        """Raise TypeError on malformed arguments."""
        with pytest.raises(TypeError):
            render([1], **kwargs)

    def test_depth_none_uses_options(self, plain):
        """Fall back to options.depth when depth is omitted."""
        assert render([1], options=plain.merge(depth=0)) == "list{ ...}"

    def test_trailing_newline(self):
        """Append a line break by default."""
        assert render(1) == "int{1}\n"


class TestRenderScalars:
    @pytest.mark.parametrize(
        "value, expected",
        [
            pytest.param(0, "int{0}", id="int-zero"),
            pytest.param(0.0, "float{0.0}", id="float-zero"),
            pytest.param(False, "bool{False}", id="bool-false"),
            pytest.param("", "str{}", id="str-empty"),
            pytest.param(b"", "bytes{b''}", id="bytes-empty"),
            pytest.param(42, "int{42}", id="int"),
            pytest.param("abc", "str{abc}", id="str"),
            pytest.param(Color.RED, "Color{Color.RED}", id="enum"),
            pytest.param(range(2), "range{range(0, 2)}", id="range-scalar"),
            pytest.param(None, "nil{nil}", id="none"),
        ],
    )
    def test_values(self, plain, value, expected):
        """Render scalars, zero values and untyped None."""
        assert render(value, options=plain) == expected

    @pytest.mark.parametrize("depth", [0, 1, 5])
    def test_zero_any_depth(self, plain, depth):
        """Render zero values the same at every non-negative depth."""
        assert render(0, depth, options=plain) == "int{0}"
        assert render("", depth, options=plain) == "str{}"

    @pytest.mark.parametrize(
        "value",
        [
            pytest.param(1, id="scalar"),
            pytest.param([1, 2], id="list"),
            pytest.param(Rec("a"), id="record"),
            pytest.param(None, id="none"),
        ],
    )
    def test_negative_depth(self, plain, value):
        """Render only the depth-exhausted marker below depth 0."""
        assert render(value, -1, options=plain) == " ..."
        assert render_inline(value, -3) == " ..."

    def test_broken_str(self, plain):
        """Render values whose __str__ raises as invalid."""
        assert render(BrokenStr(), options=plain) == "BrokenStr{invalid}"


class TestRenderSequences:
    def test_list_example(self):
        """Render one indented line per element."""
        assert render([1, 2, 3], depth=2) == "list{\n• int{1}\n• int{2}\n• int{3}}\n"

    def test_depth_zero(self, plain):
        """Cut elements of a depth-0 sequence on a single line."""
        assert render([1, 2], 0, options=plain) == "list{ ... ...}"

    def test_nested(self, plain):
        """Cut nested sequences once the depth is spent."""
        assert render([[1]], 1, options=plain) == "list{\n• list{ ...}}"

    def test_empty(self, plain):
        """Render empty containers as composites, not as zero values."""
        assert render([], options=plain) == "list{}"
        assert render({}, options=plain) == "dict{}"

    @pytest.mark.parametrize(
        "value, expected",
        [
            pytest.param((1,), "tuple{\n• int{1}}", id="tuple"),
            pytest.param({1}, "set{\n• int{1}}", id="set"),
            pytest.param(frozenset({1}), "frozenset{\n• int{1}}", id="frozenset"),
            pytest.param(collections.deque([1]), "deque{\n• int{1}}", id="deque"),
        ],
    )
    def test_sequence_types(self, plain, value, expected):
        """Render every non-textual sequence or set as a sequence."""
        assert render(value, 1, options=plain) == expected

    def test_iteration_failure(self, plain):
        """Render sequences failing to iterate as invalid."""
        assert render(BrokenSeq(), 2, options=plain) == "BrokenSeq{invalid}"


class TestRenderRecords:
    def test_nil_self_field(self, plain):
        """Render a None self-typed field as a typed nil reference."""
        assert render(Rec("a"), 3, options=plain) == "Rec{\n• Name:str{a}\n• Self:*Rec{nil}}"

    @pytest.mark.parametrize(
        "cls, expected",
        [
            pytest.param(Node, "Node{\n• val:int{1}\n• next:*Node{ val: ... next: ...}}", id="forward-ref"),
            pytest.param(SNode, "SNode{\n• val:int{1}\n• next:*SNode{ val: ... next: ...}}", id="typing-self"),
            pytest.param(GNode, "GNode{\n• val:○int{&1}\n• next:*GNode{ val: ... next: ...}}", id="generic"),
        ],
    )
    def test_self_type_guard(self, plain, cls, expected):
        """Expand a self-typed field one level only, whatever depth is left."""
        assert render(build_chain(cls, 6), 50, options=plain) == expected

    def test_self_type_guard_weakref(self, plain):
        """Expand a field declared through stacked indirections one level only."""
        nodes = [WNode(1)]
        for val in range(2, 7):
            nodes.append(WNode(val, weakref.ref(nodes[-1])))
        assert render(nodes[-1], 50, options=plain) == (
            "WNode{\n• val:int{6}\n• parent:**WNode{ val: ... parent: ...}}"
        )

    def test_typing_self_nil_label(self, plain):
        """Label a None typing.Self field with the owner class."""
        assert render(SNode(1), 50, options=plain) == "SNode{\n• val:int{1}\n• next:*SNode{nil}}"

    def test_depth_zero(self, plain):
        """Cut every field of a depth-0 record on a single line."""
        assert render(Rec("a"), 0, options=plain) == "Rec{ Name: ... Self: ...}"

    def test_zero_record(self, plain):
        """Render all-default records as zero values with their text."""
        assert render(Rec(), options=plain) == "Rec{Rec(Name='', Self=None)}"
        assert render(Node(0), options=plain) == "Node{Node(val=0, next=None)}"
        assert render(Bag(), options=plain) == "Bag{Bag(items=[], tags={})}"

    def test_non_zero_record_with_empty_container(self, plain):
        """Treat a record as non-zero once any container field has items."""
        assert render(Bag([1]), 1, options=plain) == "Bag{\n• items:list{ ...}\n• tags:dict{}}"

    def test_optional_and_any_markers(self, plain):
        """Mark indirections with '*', polymorphic slots with '○' and scalars behind them with '&'."""
        assert render(Holder(count=5, anything="x"), 1, options=plain) == (
            "Holder{\n• count:*int{&5}\n• anything:○str{&x}}"
        )

    def test_stacked_markers(self, plain):
        """Count every marker crossed on the way to a scalar."""
        assert render(Slot(5), 1, options=plain) == "Slot{\n• value:*○int{&&5}}"

    def test_private_field_raw_text(self, plain):
        """Render underscore fields by their raw text."""
        assert render(Secret("n"), 1, options=plain) == "Secret{\n• name:str{n}\n• _token:abc}"

    def test_named_tuple(self, plain):
        """Render NamedTuple instances as records."""
        assert render(Pair(1, "x"), 1, options=plain) == "Pair{\n• left:int{1}\n• right:str{x}}"

    def test_plain_object(self, plain):
        """Render instance attributes of plain classes in insertion order."""
        assert render(Plain(1, "x"), 1, options=plain) == "Plain{\n• a:int{1}\n• b:str{x}}"

    def test_cycle_bounded_by_depth(self, plain):
        """Terminate on object cycles without declared types."""
        assert render(Loop(), 2, options=plain) == (
            "Loop{\n• me:Loop{\n• • me:Loop{ me: ... n: ...}\n• • n:int{1}}\n• n:int{1}}"
        )

    def test_tuple_positional_hints(self, plain):
        """Apply positional tuple parameters to elements."""
        assert render(Coords((1, None)), 2, options=plain) == (
            "Coords{\n• pair:tuple{\n• • int{1}\n• • *str{nil}}}"
        )

    def test_list_item_hints(self, plain):
        """Apply list parameters to every element."""
        assert render(Sparse([None, 3]), 2, options=plain) == (
            "Sparse{\n• items:list{\n• • *int{nil}\n• • *int{&3}}}"
        )

    def test_unreadable_slot(self, plain):
        """Render attributes raising on access as invalid."""
        assert render(Slotted(), 1, options=plain) == "Slotted{\n• a:int{1}\n• b:object{invalid}}"

    def test_fully_qualified_names(self, plain):
        """Prefix non-builtin labels with their module."""
        opts = plain.merge(fully_qualified_names=True)
        assert render(Point(1, 2), 0, options=opts) == f"{Point.__module__}.Point{{ x: ... y: ...}}"


class TestRenderPointers:
    def test_live_weakref(self, plain):
        """Follow live weak references with the pointer marker."""
        p = Point(1, 2)
        ref = weakref.ref(p)
        assert render(ref, 1, options=plain) == "*Point{\n• x:int{1}\n• y:int{2}}"

    def test_dead_weakref(self, plain):
        """Render dead weak references as nil references."""
        ref = weakref.ref(Point(1, 2))
        gc.collect()
        assert ref() is None
        assert render(ref, options=plain) == f"{type(ref).__name__}{{nil}}"


class TestRenderMappings:
    def test_dict(self, plain):
        """Render mapping entries keyed by their text."""
        assert render({"a": 1, 2: "b"}, 1, options=plain) == "dict{\n• a:int{1}\n• 2:str{b}}"

    def test_nested(self, plain):
        """Indent values nested in entries one more level."""
        assert render({"a": [1]}, 2, options=plain) == "dict{\n• a:list{\n• • int{1}}}"

    def test_frozendict(self, plain):
        """Render third-party mappings as mappings."""
        assert render(frozendict({"a": 1}), 1, options=plain) == "frozendict{\n• a:int{1}}"

    def test_any_values(self, plain):
        """Box values of a dict[str, Any] slot and render None as untyped nil."""
        assert render(Envelope({"n": 1, "s": None}), 2, options=plain) == (
            "Envelope{\n• payload:dict{\n• • n:○int{&1}\n• • s:nil{nil}}}"
        )

    def test_self_type_guard(self, plain):
        """Expand self-typed mapping values one level only."""
        registry = Registry(a=Registry(b=Registry()))
        assert render(registry, 10, options=plain) == "Registry{\n• a:Registry{ b: ...}}"


class TestRenderExcluded:
    def test_record_field_omitted(self, plain):
        """Omit excluded record fields entirely."""
        assert render(Rec("a"), 3, ["Self"], options=plain) == "Rec{\n• Name:str{a}}"

    def test_single_name_string(self, plain):
        """Accept a single name as a plain string."""
        assert render(Rec("a"), 3, "Self", options=plain) == render(Rec("a"), 3, ["Self"], options=plain)

    def test_mapping_entry_cut(self, plain):
        """Keep excluded mapping keys and cut their values."""
        assert render({"a": 1, "b": 2}, 2, ["a"], options=plain) == "dict{\n• a: ...\n• b:int{2}}"


class TestRenderInline:
    def test_no_newline(self):
        """Produce a single line without trailing line break."""
        out = render_inline(Node(1, Node(2)), 5)
        assert "\n" not in out
        assert out == "Node{ val:int{1} next:*Node{ val: ... next: ...}}"

    def test_sequence(self):
        """Concatenate sequence elements without separators."""
        assert render_inline([1, 2], 1) == "list{int{1}int{2}}"

    def test_data_newlines_collapsed(self):
        """Collapse line breaks inside data text too."""
        assert render_inline("a\nb") == "str{a b}"

    def test_matches_indented_traversal(self):
        """Equal the marker-free indented rendering with line breaks replaced."""
        value = Config("svc", {"cpu": 2})
        indented = render(value, 3, options=RenderOptions(indent="", newline_at_end=False))
        assert render_inline(value, 3) == indented.replace("\n", " ")
        assert render_inline(value, 3) == "Config{ name:str{svc} limits:dict{ cpu:int{2}} parent:*Config{nil}}"


class TestRenderDiagnostics:
    def test_deterministic(self):
        """Render the same value identically twice."""
        value = {"a": [Point(1, 2), None], "b": Rec("x")}
        assert render(value, 4) == render(value, 4)

    def test_skip_is_silent(self):
        """Issue no warnings in the default skip mode."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            render(Slotted(), 1)
            render(BrokenStr())

    def test_warn_unreadable(self):
        """Warn about attributes raising on access in warn mode."""
        with pytest.warns(RuntimeWarning, match="Failed to read Slotted.b"):
            out = render(Slotted(), 1, options=RenderOptions(on_error="warn"))
        assert "b:object{invalid}" in out

    def test_warn_broken_str(self):
        """Warn about values failing to format in warn mode."""
        with pytest.warns(RuntimeWarning, match="Failed to format <BrokenStr>"):
            render(BrokenStr(), options=RenderOptions.debug())

    def test_warn_iteration(self):
        """Warn about composites failing to iterate in warn mode."""
        with pytest.warns(RuntimeWarning, match="Failed to iterate <BrokenSeq>"):
            render(BrokenSeq(), options=RenderOptions.debug())
