"""
Row-scoped column views.

A `Column` points at one cell of the current row of a statement: a shared
`StatementHandle` plus a column index. It reads the cell lazily, every time a
getter is called, so the same view can be projected to any type.

Lifetime rules:
- A view keeps the statement handle alive (it holds a share of it).
- A view is only meaningful for the row that was current when it was built.
  Do not keep views across `Statement.execute_step()` or `Statement.reset()`.
- Text and blob projections reflect the cell at call time; copy them
  (`get_string()`) if they must outlive the row.

Conversions never raise: reading a cell as another type follows SQLite's
coercion rules (see `litecolumn.core.coercion`), e.g. TEXT "12abc" reads as
the integer 12 and NULL reads as 0 / "".
"""

from __future__ import annotations

import dataclasses
import struct
import types
import typing
import weakref
from typing import IO, Any, Callable, Final, TypeVar

from litecolumn.core.coercion import ColumnType
from litecolumn.core.handle import StatementHandle

T = TypeVar("T")

# Width of the C `long` of this interpreter's build (LP64 vs ILP32/LLP64).
LONG_IS_64_BIT: Final[bool] = struct.calcsize("l") == 8


class Column:
    """
    One cell of the current row.

    Built by `Statement.get_column()`, which checks the row and the index
    first. Constructing a view directly skips those checks.

    Reading a view after `Statement.reset()`, after the statement ran to
    completion, or after its handle was finalized is outside the contract and
    is not guarded: it fails with `TypeError` ('NoneType' object is not
    subscriptable) because the handle no longer holds a row.
    """

    __slots__ = ("_handle", "_index", "_release", "__weakref__")

    def __init__(self, handle: StatementHandle, index: int) -> None:
        self._handle = handle.share()
        self._index = index
        # Give the share back exactly once, at collection or on release().
        self._release = weakref.finalize(self, handle.release)

    def __repr__(self) -> str:
        if self._handle.has_row:
            return f"<Column {self._index}: {self.get_type().name}>"
        return f"<Column {self._index}>"

    @property
    def index(self) -> int:
        return self._index

    def release(self) -> None:
        """Release the view's share of the statement early (idempotent)."""
        self._release()

    def get_name(self) -> str:
        """Name assigned to this result column (possibly an alias)."""
        return self._handle.column_name(self._index)

    # ===========================================================================
    # Numeric projections
    # ===========================================================================

    def get_int(self) -> int:
        """Signed 32-bit value (low 32 bits of the 64-bit projection)."""
        return self._handle.raw_int(self._index)

    def get_uint(self) -> int:
        """
        Unsigned 32-bit value.

        There is no unsigned 64-bit getter: SQLite has no such integer domain.
        """
        return self._handle.raw_int64(self._index) & 0xFFFFFFFF

    def get_int64(self) -> int:
        return self._handle.raw_int64(self._index)

    def get_double(self) -> float:
        return self._handle.raw_double(self._index)

    if LONG_IS_64_BIT:

        def get_long(self) -> int:
            """Native `long` projection; 64 bits on this platform."""
            return self.get_int64()

    else:

        def get_long(self) -> int:
            """Native `long` projection; 32 bits on this platform."""
            return self.get_int()

        def get_ulong(self) -> int:
            return self.get_uint()

    # ===========================================================================
    # Text / blob projections
    # ===========================================================================

    def get_text(self, default: str = "") -> str:
        """
        Text value, as a C string would see it: cut at the first NUL.

        Returns `default` for a NULL cell. Use `get_string()` for values that
        may contain NUL characters.
        """
        text = self._handle.raw_text(self._index)
        if text is None:
            return default
        nul = text.find("\0")
        return text if nul < 0 else text[:nul]

    def get_blob(self) -> memoryview | None:
        """
        Read-only view of the cell bytes, or None for NULL.

        Only valid while the statement stays on the current row.
        """
        data = self._handle.raw_blob(self._index)
        if data is None:
            return None
        return memoryview(data)

    def get_string(self) -> bytes:
        """Owned copy of the TEXT or BLOB bytes (`get_bytes()` long, NULs kept)."""
        return self._handle.raw_blob(self._index) or b""

    def get_bytes(self) -> int:
        """
        Number of bytes of the text/blob value, without terminator.

        - TEXT: UTF-8 size of the text
        - INTEGER/FLOAT: size of their text rendering
        - BLOB: size of the blob
        - NULL: 0
        """
        return self._handle.raw_bytes(self._index)

    def size(self) -> int:
        return self.get_bytes()

    # ===========================================================================
    # Storage class
    # ===========================================================================

    def get_type(self) -> ColumnType:
        """
        Storage class of the cell.

        Only meaningful before any conversion getter was called on this cell
        in the current row; afterwards the result is whatever the engine
        reports.
        """
        return self._handle.raw_type(self._index)

    def is_integer(self) -> bool:
        return self.get_type() is ColumnType.INTEGER

    def is_float(self) -> bool:
        return self.get_type() is ColumnType.FLOAT

    def is_text(self) -> bool:
        return self.get_type() is ColumnType.TEXT

    def is_blob(self) -> bool:
        return self.get_type() is ColumnType.BLOB

    def is_null(self) -> bool:
        return self.get_type() is ColumnType.NULL

    # ===========================================================================
    # Conversions
    # ===========================================================================

    # Python ints are unbounded, so int() uses the 64-bit projection.
    def __int__(self) -> int:
        return self.get_int64()

    def __float__(self) -> float:
        return self.get_double()

    # Owned text: unlike get_text(), NUL characters are kept.
    def __str__(self) -> str:
        return self._handle.raw_text(self._index) or ""

    def __bytes__(self) -> bytes:
        return self.get_string()

    def convert(self, target: Any) -> Any:
        """
        Project the cell to a Python type.

        Supported targets: int, float, str, bytes, memoryview, bool and
        ColumnType, `NewType`s over them, and `X | None` (None for NULL).
        `Any` and `Column` return the view itself.
        """
        if target is Any or target is Column:
            return self
        supertype = getattr(target, "__supertype__", None)
        if supertype is not None:
            return self.convert(supertype)
        if typing.get_origin(target) in (typing.Union, types.UnionType):
            options = [arg for arg in typing.get_args(target) if arg is not type(None)]
            if len(options) != 1:
                raise TypeError(f"Cannot convert a column to ambiguous type {target!r}")
            if self.is_null():
                return None
            return self.convert(options[0])
        getter = _CONVERTERS.get(target)
        if getter is None:
            raise TypeError(f"No conversion from a column to {target!r}")
        return getter(self)

    def write_to(self, stream: IO[str]) -> IO[str]:
        """Write the full text form of the cell (NULs included) to `stream`."""
        stream.write(str(self))
        return stream


_CONVERTERS: dict[Any, Callable[[Column], Any]] = {
    int: Column.get_int64,
    float: Column.get_double,
    str: Column.__str__,
    bytes: Column.get_string,
    memoryview: Column.get_blob,
    bool: lambda column: column.get_int64() != 0,
    ColumnType: Column.get_type,
}


def _field_types(record_type: Any, count: int) -> list[Any] | None:
    """Annotated types of the first `count` constructor fields, if declared."""
    if dataclasses.is_dataclass(record_type):
        names = [f.name for f in dataclasses.fields(record_type) if f.init]
    elif isinstance(record_type, type) and issubclass(record_type, tuple) and hasattr(
        record_type, "_fields"
    ):
        names = list(record_type._fields)
    else:
        return None

    hints = typing.get_type_hints(record_type)
    # Extra columns stay unconverted so the constructor reports the arity mismatch.
    return [hints.get(names[i], Any) if i < len(names) else Any for i in range(count)]


def build_record(record_type: Callable[..., T], handle: StatementHandle, count: int) -> T:
    """
    Build `record_type` from the first `count` columns of the current row.

    Views are created for indices 0..count-1, in order, and passed
    positionally in a single constructor call. Dataclasses and NamedTuples
    get each view converted by their field annotations first; any other
    callable receives the `Column` views themselves.

    Preconditions (row available, `count` within the column count) are
    checked by `Statement.get_columns()`.
    """
    columns = [Column(handle, index) for index in range(count)]
    field_types = _field_types(record_type, count)
    if field_types is None:
        return record_type(*columns)
    return record_type(*(column.convert(hint) for column, hint in zip(columns, field_types)))
