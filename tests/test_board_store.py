import random

from board_store import (
    COLUMNS,
    AddTask,
    BoardState,
    BoardStore,
    Card,
    DeleteTask,
    LoadTasks,
    MoveTask,
    board_reducer,
    group_tasks,
)


def _ids(state: BoardState, key: str) -> list:
    return [c.id for c in state.column(key)]


def test_load_replaces_state():
    old = BoardState(todo=(Card("1", "a"),))
    new = BoardState(done=(Card("2", "b"),))
    assert board_reducer(old, LoadTasks(new)) is new


def test_add_appends_to_todo_only():
    state = BoardState(todo=(Card("1", "a"),), done=(Card("2", "b"),))
    state = board_reducer(state, AddTask(Card("3", "c")))
    assert _ids(state, "todo") == ["1", "3"]
    assert _ids(state, "done") == ["2"]


def test_add_existing_id_is_noop():
    state = BoardState(done=(Card("1", "a"),))
    assert board_reducer(state, AddTask(Card("1", "a"))) is state


def test_move_appends_to_destination():
    state = BoardState(todo=(Card("1", "a"), Card("2", "b")), done=(Card("3", "c"),))
    state = board_reducer(state, MoveTask("1", "todo", "done"))
    assert _ids(state, "todo") == ["2"]
    assert _ids(state, "done") == ["3", "1"]
    assert state.done[-1] == Card("1", "a")


def test_move_noops():
    state = BoardState(todo=(Card("1", "a"),))
    assert board_reducer(state, MoveTask("missing", "todo", "done")) is state
    assert board_reducer(state, MoveTask("1", "inProgress", "done")) is state
    assert board_reducer(state, MoveTask("1", "todo", "archive")) is state
    assert board_reducer(state, MoveTask("1", "", "done")) is state


def test_delete_from_named_column():
    state = BoardState(todo=(Card("1", "a"),), inProgress=(Card("2", "b"),))
    state = board_reducer(state, DeleteTask("2", "inProgress"))
    assert _ids(state, "inProgress") == []
    assert _ids(state, "todo") == ["1"]
    # Wrong column: nothing removed.
    assert board_reducer(state, DeleteTask("1", "done")).todo == state.todo
    assert board_reducer(state, DeleteTask("1", "trash")) is state


def test_reducer_does_not_mutate_input():
    state = BoardState(todo=(Card("1", "a"),))
    board_reducer(state, MoveTask("1", "todo", "done"))
    assert _ids(state, "todo") == ["1"]
    assert _ids(state, "done") == []


def test_every_card_in_exactly_one_column_under_random_actions():
    rng = random.Random(1234)
    state = BoardState()
    expected = set()
    next_id = 0
    for _ in range(500):
        roll = rng.random()
        known = sorted(expected)
        if roll < 0.35 or not known:
            next_id += 1
            card_id = str(next_id)
            state = board_reducer(state, AddTask(Card(card_id, f"task {card_id}")))
            expected.add(card_id)
        elif roll < 0.75:
            card_id = rng.choice(known + ["ghost"])
            state = board_reducer(state, MoveTask(card_id, rng.choice(COLUMNS), rng.choice(COLUMNS)))
        else:
            card_id = rng.choice(known)
            source = rng.choice(COLUMNS)
            if state.locate(card_id) == source:
                expected.discard(card_id)
            state = board_reducer(state, DeleteTask(card_id, source))

        all_ids = [c.id for c in state.cards()]
        assert len(all_ids) == len(set(all_ids))
        assert set(all_ids) == expected


def test_group_tasks_by_status():
    tasks = [
        {"_id": "a", "text": "one", "status": "todo", "owners": []},
        {"_id": "b", "text": "two", "status": "done", "owners": []},
        {"_id": "c", "text": "three", "status": "todo", "owners": []},
        {"_id": "d", "text": "four", "status": "archived", "owners": []},
    ]
    state = group_tasks(tasks)
    assert _ids(state, "todo") == ["a", "c"]
    assert _ids(state, "inProgress") == []
    assert _ids(state, "done") == ["b"]
    assert state.locate("d") is None


def test_store_notifies_subscribers():
    store = BoardStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.dispatch(AddTask(Card("1", "a")))
    assert seen[-1] is store.state
    assert _ids(store.state, "todo") == ["1"]

    unsubscribe()
    store.dispatch(AddTask(Card("2", "b")))
    assert len(seen) == 1
