from querydesk.history import QueryHistory


def test_add_keeps_newest_first():
    history = QueryHistory()
    history.add("select 1")
    history.add("select 2")
    history.add("  ")
    history.add(None)
    assert history.recent() == ["select 2", "select 1"]


def test_add_moves_duplicate_to_front():
    history = QueryHistory()
    for cmd in ["a", "b", "a "]:
        history.add(cmd)
    assert history.recent() == ["a", "b"]
    assert len(history) == 2


def test_max_size():
    history = QueryHistory(max_size=3)
    for i in range(5):
        history.add(f"q{i}")
    assert history.recent() == ["q4", "q3", "q2"]


def test_recent_count():
    history = QueryHistory()
    for i in range(4):
        history.add(f"q{i}")
    assert history.recent(2) == ["q3", "q2"]
    assert history.recent(10) == ["q3", "q2", "q1", "q0"]
    assert history.recent(-1) == ["q3", "q2", "q1", "q0"]


def test_navigation():
    history = QueryHistory()
    assert history.previous() is None
    assert history.next() is None
    history.add("first")
    history.add("second")

    assert history.next() is None
    assert history.previous() == "second"
    assert history.previous() == "first"
    assert history.previous() == "first"
    assert history.next() == "second"
    assert history.next() == ""
    assert history.next() is None


def test_clear():
    history = QueryHistory()
    history.add("x")
    history.clear()
    assert len(history) == 0
    assert history.previous() is None
