"""Column layout, visibility and sort state of a process list, kept in settings."""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from typing import Any

MIN_COLUMN_WIDTH = 30

Listener = Callable[["TreeViewColumn"], None]


class TreeViewColumn:
    """A list column identified by its sort id.

    Changing ``fixed_width`` or ``visible`` notifies the bound listeners.
    """

    def __init__(
        self,
        sort_id: int,
        title: str,
        fixed_width: int = 0,
        visible: bool = True,
        min_width: int = -1,
    ) -> None:
        self.sort_id = sort_id
        self.title = title
        self.min_width = min_width
        self._fixed_width = fixed_width
        self._visible = visible
        self._listeners: list[Listener] = []

    def __repr__(self) -> str:
        return f"TreeViewColumn(sort_id={self.sort_id!r}, title={self.title!r})"

    def connect(self, listener: Listener) -> None:
        """Call *listener* whenever the width or visibility changes."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)

    @property
    def fixed_width(self) -> int:
        return self._fixed_width

    @fixed_width.setter
    def fixed_width(self, value: int) -> None:
        self._fixed_width = value
        self._notify()

    @property
    def width(self) -> int:
        """The current width of the column."""
        return self._fixed_width

    @property
    def visible(self) -> bool:
        return self._visible

    @visible.setter
    def visible(self, value: bool) -> None:
        self._visible = bool(value)
        self._notify()


class TreeViewState:
    """Columns of a list view and their persistence in a settings mapping.

    Settings keys: ``sort-col``, ``sort-order``, ``columns-order`` and, per
    column id N, ``col-N-width`` and ``col-N-visible``.
    """

    def __init__(self, settings: MutableMapping[str, Any], store_column_order: bool) -> None:
        self.settings = settings
        self.store_column_order = store_column_order
        self.columns: list[TreeViewColumn] = []
        self.excluded_columns: set[int] = set()
        self.menu_items: list[tuple[str, str]] = []
        self.sort_column: int | None = None
        self.sort_order: int = 0

    def add_excluded_column(self, column_id: int) -> None:
        """Keep the column with this id hidden whenever state is loaded."""
        self.excluded_columns.add(column_id)

    def append_and_bind_column(self, column: TreeViewColumn) -> None:
        """Add a column, a menu entry for it, and persist its changes."""
        self.columns.append(column)
        self.menu_items.append((column.title, f"treeview.show-{column.sort_id}"))
        column.connect(self.save_column_state)

    def get_column_from_id(self, sort_id: int) -> TreeViewColumn | None:
        """Return the column with the given sort id, or None."""
        return next((col for col in self.columns if col.sort_id == sort_id), None)

    def save_column_state(self, column: TreeViewColumn) -> None:
        """Store the width and visibility of one column."""
        self.settings[f"col-{column.sort_id}-width"] = column.width
        self.settings[f"col-{column.sort_id}-visible"] = column.visible

    def save_state(self) -> None:
        """Store the sort column and order, and the column order if kept."""
        if self.sort_column is not None:
            self.settings["sort-col"] = self.sort_column
            self.settings["sort-order"] = self.sort_order

        if self.store_column_order and self.columns:
            self.settings["columns-order"] = [col.sort_id for col in self.columns]

    def _move_column_after(self, column: TreeViewColumn, base: TreeViewColumn | None) -> None:
        self.columns.remove(column)
        position = 0 if base is None else self.columns.index(base) + 1
        self.columns.insert(position, column)

    def load_state(self) -> None:
        """Restore sorting and, if kept, column widths, visibility and order."""
        self.sort_column = self.settings.get("sort-col", 0)
        self.sort_order = self.settings.get("sort-order", 0)

        if not self.store_column_order:
            return

        for col in list(self.columns):
            if col.sort_id in self.excluded_columns:
                col.visible = False
                continue
            col.fixed_width = self.settings.get(f"col-{col.sort_id}-width", col.fixed_width)
            col.min_width = MIN_COLUMN_WIDTH
            col.visible = self.settings.get(f"col-{col.sort_id}-visible", col.visible)

        last: TreeViewColumn | None = None
        for sort_id in self.settings.get("columns-order", []):
            col = self.get_column_from_id(sort_id)
            if col is not None and col is not last:
                self._move_column_after(col, last)
                last = col