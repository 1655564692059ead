"""Unit tests for scrappey_mcp.sessions."""
from scrappey_mcp.sessions import SessionRegistry


def test_record_and_list_in_insertion_order():
    reg = SessionRegistry()
    reg.record("b")
    reg.record("a")
    reg.record("c")
    assert reg.list() == ["b", "a", "c"]
    assert len(reg) == 3


def test_forget():
    reg = SessionRegistry()
    reg.record("a")
    reg.record("b")
    reg.forget("a")
    assert reg.list() == ["b"]
    assert not reg.contains("a")
    assert "b" in reg


def test_forget_unknown_is_noop():
    reg = SessionRegistry()
    reg.record("a")
    reg.forget("zzz")
    assert reg.list() == ["a"]


def test_rerecord_keeps_first_position():
    reg = SessionRegistry()
    reg.record("a")
    reg.record("b")
    reg.record("a")
    assert reg.list() == ["a", "b"]


def test_empty():
    reg = SessionRegistry()
    assert reg.list() == []
    assert len(reg) == 0
    assert not reg.contains("a")
    assert list(reg) == []


def test_list_is_a_copy():
    reg = SessionRegistry()
    reg.record("a")
    ids = reg.list()
    ids.append("b")
    assert reg.list() == ["a"]


def test_iterates_oldest_first():
    reg = SessionRegistry()
    reg.record("b")
    reg.record("a")
    assert [sid for sid in reg] == ["b", "a"]


def test_forget_while_iterating():
    reg = SessionRegistry()
    reg.record("a")
    reg.record("b")
    for sid in reg:
        reg.forget(sid)
    assert len(reg) == 0
