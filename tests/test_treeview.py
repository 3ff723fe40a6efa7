import pytest

from sysmonkit.treeview import TreeViewColumn, TreeViewState


def _state(settings=None, store=True, ids=(0, 1, 2)):
    state = TreeViewState({} if settings is None else settings, store)
    for i in ids:
        state.append_and_bind_column(TreeViewColumn(i, f"Col {i}", fixed_width=50))
    return state


def test_get_column_from_id():
    state = _state()
    assert state.get_column_from_id(1).title == "Col 1"
    assert state.get_column_from_id(99) is None


def test_menu_items_use_show_action():
    state = _state(ids=(3,))
    assert state.menu_items == [("Col 3", "treeview.show-3")]


def test_changing_visibility_is_saved():
    settings = {}
    state = _state(settings)
    state.get_column_from_id(2).visible = False
    assert settings["col-2-visible"] is False
    assert settings["col-2-width"] == 50


def test_changing_width_is_saved():
    settings = {}
    state = _state(settings)
    state.get_column_from_id(0).fixed_width = 120
    assert settings["col-0-width"] == 120


def test_save_state_writes_sort_and_order():
    settings = {}
    state = _state(settings)
    state.sort_column = 2
    state.sort_order = 1
    state.save_state()
    assert settings["sort-col"] == 2
    assert settings["sort-order"] == 1
    assert settings["columns-order"] == [0, 1, 2]


def test_save_state_without_column_order():
    settings = {}
    state = _state(settings, store=False)
    state.save_state()
    assert "columns-order" not in settings
    assert "sort-col" not in settings


def test_load_state_restores_columns():
    settings = {
        "sort-col": 1,
        "sort-order": 1,
        "columns-order": [2, 0, 1],
        "col-0-width": 80,
        "col-0-visible": True,
        "col-1-width": 90,
        "col-1-visible": False,
        "col-2-width": 70,
        "col-2-visible": True,
    }
    state = _state(dict(settings))
    state.add_excluded_column(0)
    state.load_state()
    assert state.sort_column == 1
    assert state.sort_order == 1
    assert [c.sort_id for c in state.columns] == [2, 0, 1]
    assert state.get_column_from_id(0).visible is False
    assert state.get_column_from_id(1).visible is False
    assert state.get_column_from_id(1).fixed_width == 90
    assert state.get_column_from_id(2).min_width == 30


def test_load_state_ignores_unknown_ids_in_order():
    state = _state({"columns-order": [7, 1, 1, 2]})
    state.load_state()
    assert [c.sort_id for c in state.columns] == [1, 2, 0]


def test_order_round_trip():
    settings = {}
    state = _state(settings, ids=(4, 5, 6))
    state.columns.reverse()
    state.save_state()
    restored = _state(settings, ids=(4, 5, 6))
    restored.load_state()
    assert [c.sort_id for c in restored.columns] == [6, 5, 4]


@pytest.mark.parametrize("store", [True, False])
def test_load_state_reads_sort(store):
    state = _state({"sort-col": 2, "sort-order": 0}, store=store)
    state.load_state()
    assert (state.sort_column, state.sort_order) == (2, 0)