"""
Value classification for the renderer.

Every value met during a render walk is wrapped into a ValueHandle - the value plus its
declared type (hint), when one is known - and classified into exactly one member
of the closed Kind enumeration. The renderer dispatches on Kind only and never
inspects values directly.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import numbers
import sys
import weakref

from dataclasses import dataclass, fields as dc_fields, is_dataclass
from enum import Enum, StrEnum, unique
from typing import Any, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .sentinels import UNREADABLE
from .typing import (bind_self, container_args, deref_hint, is_indirection, is_optional, is_polymorphic,
                     item_hint, record_hints, type_label, value_hint)
from .utils import class_name

# Constants ------------------------------------------------------------------------------------------------------------

# Classes from these top level modules are never expanded as records
_STDLIB_MODULES = frozenset(sys.stdlib_module_names) | {"builtins"}

# Sequences and sets of these types are rendered as scalars
_TEXTUAL_TYPES = (str, bytes, bytearray, memoryview, range)

_ZERO_SCALAR_TYPES = (numbers.Number, str, bytes, bytearray)


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class Kind(StrEnum):
    """
    Closed set of value shapes the renderer knows how to format.

        - NIL: None without a specific declared type
        - ZERO: default value of its type (0, "", b"", all-default record)
        - INVALID: value which could not be obtained
        - NIL_REF: None in a slot with a specific declared type, or a dead weak reference
        - POINTER: owns-or-nil reference to one referent (Optional[X] slot, weakref.ref)
        - BOX: value in a polymorphic slot (Any, object, TypeVar, union)
        - SEQUENCE: ordered elements (list, tuple, deque, set...)
        - RECORD: named fields (dataclass, NamedTuple, plain object)
        - MAPPING: key-value entries
        - SCALAR: everything else
    """
    NIL = "nil"
    ZERO = "zero"
    INVALID = "invalid"
    NIL_REF = "nil_ref"
    POINTER = "pointer"
    BOX = "box"
    SEQUENCE = "sequence"
    RECORD = "record"
    MAPPING = "mapping"
    SCALAR = "scalar"


@dataclass(frozen=True, eq=False)
class Field:
    """
    A named field of a record.

    Attributes:
        name: Attribute name.
        hint: Declared type of the field or None.
        handle: Field value wrapped with its hint; holds UNREADABLE if access raised.
        accessible: False for private names, which are shown by raw text only.
        error: Exception raised on attribute access, if any.
    """
    name: str
    hint: Any
    handle: "ValueHandle"
    accessible: bool = True
    error: Exception | None = None


@dataclass(frozen=True, eq=False)
class ValueHandle:
    """
    Runtime value plus its declared type.

    Attributes:
        value: The wrapped value. Never mutated.
        hint: Declared type of the slot holding the value, None if unknown.

    Examples:
        >>> ValueHandle(5).kind()
        <Kind.SCALAR: 'scalar'>
        >>> ValueHandle(None, int | None).kind()
        <Kind.NIL_REF: 'nil_ref'>
        >>> ValueHandle(5, int | None).deref()
        ValueHandle(value=5, hint=<class 'int'>)
    """
    value: Any
    hint: Any = None

    def kind(self) -> Kind:
        """Classify the handle, first matching rule wins."""
        value, hint = self.value, self.hint

        if value is UNREADABLE:
            return Kind.INVALID
        if value is None:
            if hint is None or is_polymorphic(hint):
                return Kind.NIL
            return Kind.NIL_REF
        if isinstance(value, weakref.ReferenceType) and value() is None:
            return Kind.NIL_REF
        if hint is not None:
            if is_indirection(hint):
                return Kind.POINTER
            if is_polymorphic(hint):
                return Kind.BOX
        if isinstance(value, weakref.ReferenceType):
            return Kind.POINTER

        if is_zero_scalar(value):
            return Kind.ZERO
        if _is_plain_record(value) or _is_object_record(value):
            return Kind.ZERO if self._is_zero_record() else Kind.RECORD
        if isinstance(value, abc.Mapping):
            return Kind.MAPPING
        if isinstance(value, (abc.Sequence, abc.Set)) and not isinstance(value, _TEXTUAL_TYPES):
            return Kind.SEQUENCE
        return Kind.SCALAR

    def label(self, fully_qualified: bool = False) -> str:
        """
        Type label shown in front of the braces.

        None values and unreadable slots are labelled by their declared type,
        everything else by the runtime class.
        """
        if self.value is None or self.value is UNREADABLE:
            if self.hint is None:
                return "nil" if self.value is None else "object"
            return type_label(self.hint, fully_qualified)
        if isinstance(self.value, weakref.ReferenceType) and self.hint is not None:
            return type_label(self.hint, fully_qualified)
        return class_name(self.value, fully_qualified=fully_qualified)

    def text(self) -> str:
        """
        Default textual form of the value.

        Records without a custom __repr__/__str__ get a generated Name(field=value, ...)
        form, so the text never depends on memory addresses.

        Raises:
            Exception: Whatever the value's __str__ raises.
        """
        cls = type(self.value)
        if _has_default_text(cls) and is_record(self.value):
            parts = (f"{f.name}={_field_text(f.handle)}" for f in self.fields())
            return f"{class_name(cls)}({', '.join(parts)})"
        return str(self.value)

    def deref(self) -> "ValueHandle":
        """
        Follow one pointer layer.

        A union with None is stripped from the hint first; a weak reference is called
        when the hint has no optional layer left.
        """
        value, hint = self.value, self.hint
        if isinstance(value, weakref.ReferenceType):
            if hint is not None and is_optional(hint):
                return ValueHandle(value, deref_hint(hint))
            inner = deref_hint(hint) if hint is not None and is_indirection(hint) else None
            return ValueHandle(value(), inner)
        return ValueHandle(value, deref_hint(hint))

    def unbox(self) -> "ValueHandle":
        """Drop the polymorphic hint, the concrete value is described by its runtime class."""
        return ValueHandle(self.value)

    def elements(self) -> Iterator["ValueHandle"]:
        """Yield sequence elements in iteration order with their declared hints."""
        origin, args = container_args(self.hint, type(self.value))
        for index, item in enumerate(self.value):
            yield ValueHandle(item, item_hint(origin, args, index))

    def entries(self) -> Iterator[tuple[Any, "ValueHandle"]]:
        """Yield (key, value handle) pairs of a mapping in iteration order, unsorted."""
        origin, args = container_args(self.hint, type(self.value))
        hint = value_hint(origin, args)
        for key, item in self.value.items():
            yield key, ValueHandle(item, hint)

    def fields(self) -> Iterator[Field]:
        """Yield record fields in declaration order."""
        obj = self.value
        try:
            hints = record_hints(type(obj))
        except TypeError:
            hints = {}

        for name in record_field_names(obj):
            error = None
            try:
                field_value = getattr(obj, name)
            except RecursionError:
                raise
            except Exception as e:
                field_value, error = UNREADABLE, e
            hint = hints.get(name)
            if hint is not None:
                hint = bind_self(hint, type(obj))
            yield Field(name=name,
                        hint=hint,
                        handle=ValueHandle(field_value, hint),
                        accessible=not name.startswith("_"),
                        error=error)

    def _is_zero_record(self) -> bool:
        """A record is zero if every field is None, a zero scalar or an empty container."""
        for f in self.fields():
            v = f.handle.value
            if v is None or is_zero_scalar(v):
                continue
            if (isinstance(v, (abc.Mapping, abc.Sequence, abc.Set))
                    and not _is_plain_record(v) and not isinstance(v, _TEXTUAL_TYPES)):
                try:
                    empty = len(v) == 0
                except Exception:
                    empty = False
                if empty:
                    continue
            return False
        return True


# Methods --------------------------------------------------------------------------------------------------------------

def is_zero_scalar(value: Any) -> bool:
    """
    Check if value equals the default instance of its numeric or textual type.

    Examples:
        >>> is_zero_scalar(0), is_zero_scalar(""), is_zero_scalar(0.5)
        (True, True, False)
    """
    if isinstance(value, Enum) or not isinstance(value, _ZERO_SCALAR_TYPES):
        return False
    try:
        return bool(value == type(value)())
    except Exception:
        return False


def is_record(value: Any) -> bool:
    """Check if value is rendered field by field."""
    return _is_plain_record(value) or _is_object_record(value)


def record_field_names(obj: Any) -> list[str]:
    """
    Return field names of a record in declaration order.

    Dataclass fields, NamedTuple fields, or slots (base classes first) followed by
    instance __dict__ keys in insertion order.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return [f.name for f in dc_fields(obj)]
    if isinstance(obj, tuple) and hasattr(type(obj), "_fields"):
        return list(type(obj)._fields)

    names = []
    for klass in reversed(type(obj).__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot not in ("__dict__", "__weakref__") and slot not in names:
                names.append(slot)
    names.extend(n for n in getattr(obj, "__dict__", {}) if n not in names)
    return names


# Private Methods ------------------------------------------------------------------------------------------------------

def _is_plain_record(value: Any) -> bool:
    """Dataclass and NamedTuple instances, records regardless of their module."""
    if isinstance(value, type):
        return False
    if is_dataclass(value):
        return True
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def _is_object_record(value: Any) -> bool:
    """Instances of non-stdlib classes holding their state in __dict__ or __slots__."""
    if isinstance(value, (type, Enum, BaseException, abc.Mapping, abc.Sequence, abc.Set) + _ZERO_SCALAR_TYPES):
        return False
    cls = type(value)
    module = (getattr(cls, "__module__", None) or "").partition(".")[0]
    if module in _STDLIB_MODULES:
        return False
    if hasattr(value, "__dict__"):
        return True
    return any(klass.__dict__.get("__slots__") for klass in cls.__mro__)


def _has_default_text(cls: type) -> bool:
    """Check if a class keeps object's __str__ and __repr__, i.e. its text shows an address."""
    return cls.__str__ is object.__str__ and cls.__repr__ is object.__repr__


def _field_text(handle: ValueHandle) -> str:
    """Text of a field inside a generated record text, nested records are not expanded."""
    value = handle.value
    if value is UNREADABLE:
        return "invalid"
    if is_record(value) and _has_default_text(type(value)):
        return f"{class_name(value)}(...)"
    return repr(value) if isinstance(value, str) else str(value)
