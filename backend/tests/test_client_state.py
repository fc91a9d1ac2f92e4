"""Tests for the client-side chat state rules."""

import pytest

from mindmate.client.state import ChatState, ContactSummary, assistant_contact

ME = "m" * 32


def _contacts():
    return [
        ContactSummary(id="a" * 32, name="Ann"),
        ContactSummary(id="b" * 32, name="Ben"),
        ContactSummary(id="c" * 32, name="Cat", role="caretaker"),
    ]


def _record(sender, receiver=ME, text="hi", created_at="2026-10-19T10:00:00+00:00", msg_id=1):
    return {
        "id": msg_id,
        "sender": sender,
        "receiver": receiver,
        "receiverType": "user",
        "message": text,
        "createdAt": created_at,
    }


@pytest.fixture
def state():
    s = ChatState(ME)
    s.set_contacts(_contacts())
    return s


def test_contact_from_payload_lowercases_role():
    contact = ContactSummary.from_payload({"id": "x" * 32, "name": "X", "role": "Caretaker"})
    assert contact.role == "caretaker"
    assert contact.kind.value == "caretaker"
    assert contact.has_unread is False


def test_message_from_open_conversation_is_appended(state):
    state.select(state.contact("b" * 32))
    assert state.receive(_record("b" * 32, text="hello"))
    assert [m["message"] for m in state.messages] == ["hello"]


def test_message_from_other_contact_not_appended_but_promoted(state):
    state.select(state.contact("a" * 32))
    assert not state.receive(_record("c" * 32))
    assert state.messages == []
    assert [c.id for c in state.contacts] == ["c" * 32, "a" * 32, "b" * 32]
    assert state.contacts[0].has_unread is True
    assert state.contacts[0].last_message_time == "2026-10-19T10:00:00+00:00"


def test_open_conversation_still_marked_unread(state):
    state.select(state.contact("b" * 32))
    state.receive(_record("b" * 32))
    assert state.contact("b" * 32).has_unread is True
    assert state.contacts[0].id == "b" * 32


def test_own_echo_ignored(state):
    state.select(state.contact("a" * 32))
    assert not state.receive(_record(ME, receiver="a" * 32))
    assert state.messages == []
    assert [c.id for c in state.contacts] == ["a" * 32, "b" * 32, "c" * 32]


def test_unknown_sender_appended_nowhere(state):
    assert not state.receive(_record("z" * 32))
    assert [c.id for c in state.contacts] == ["a" * 32, "b" * 32, "c" * 32]


def test_selecting_clears_unread_and_messages(state):
    state.receive(_record("c" * 32))
    state.select(state.contact("a" * 32))
    state.load_history("a" * 32, [_record("a" * 32, text="old")])

    state.select(state.contact("c" * 32))
    assert state.contact("c" * 32).has_unread is False
    assert state.messages == []


def test_history_replaces_instead_of_merging(state):
    state.select(state.contact("a" * 32))
    state.add_optimistic("pending")
    assert state.load_history("a" * 32, [_record("a" * 32, text="from server")])
    assert [m["message"] for m in state.messages] == ["from server"]


def test_stale_history_ignored_after_switch(state):
    state.select(state.contact("a" * 32))
    state.select(state.contact("b" * 32))
    assert not state.load_history("a" * 32, [_record("a" * 32)])
    assert state.messages == []


def test_optimistic_message_shape_and_promotion(state):
    state.select(state.contact("c" * 32))
    state.contact("c" * 32).has_unread = True

    first = state.add_optimistic("hello")
    second = state.add_optimistic("again")

    assert first["id"] == "local-1" and second["id"] == "local-2"
    assert first["local"] is True
    assert first["sender"] == ME and first["receiver"] == "c" * 32
    assert first["receiverType"] == "caretaker"
    assert state.contacts[0].id == "c" * 32
    assert state.contacts[0].has_unread is False


def test_own_echo_does_not_duplicate_optimistic(state):
    state.select(state.contact("a" * 32))
    state.add_optimistic("hello")
    # The server echo of our own message is ignored, and a reply is appended after it
    state.receive(_record(ME, receiver="a" * 32, text="hello", msg_id=7))
    state.receive(_record("a" * 32, text="hi back", msg_id=8))
    assert [m["message"] for m in state.messages] == ["hello", "hi back"]


def test_optimistic_requires_open_conversation():
    with pytest.raises(ValueError):
        ChatState(ME).add_optimistic("hello")


def test_assistant_contact_kind():
    assert assistant_contact().kind.value == "ai"
