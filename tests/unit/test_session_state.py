"""Unit tests for chat_session_store.session.state.

Covers Session construction, tags, child bookkeeping, create_branch, the
SessionInfo projection, and BranchTree traversal.
"""
from __future__ import annotations

import pytest

from chat_session_store.errors import SessionValidationError
from chat_session_store.session.message import MessageRole
from chat_session_store.session.state import BranchTree, Session, SessionInfo


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def session() -> Session:
    s = Session.new("design review")
    s.set_model("anthropic", "claude")
    s.set_system_prompt("You are a reviewer.")
    s.set_parameters(0.3, 1024)
    s.add_tag("work")
    s.config["theme"] = {"dark": True}
    s.add_message("user", "Please review this design.")
    s.add_message("assistant", "The design looks reasonable.")
    s.add_message("user", "What about caching?")
    s.add_message("assistant", "Add a cache layer.")
    return s


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestSessionNew:
    def test_conversation_shares_session_id(self) -> None:
        s = Session.new("x")
        assert s.conversation.id == s.id

    def test_explicit_session_id(self) -> None:
        assert Session.new("x", session_id="fixed").id == "fixed"

    def test_ids_are_unique(self) -> None:
        assert Session.new().id != Session.new().id

    def test_new_session_is_a_root(self) -> None:
        s = Session.new()
        assert not s.is_branch()
        assert not s.has_branches()
        assert s.parent_id == ""
        assert s.branch_point == 0

    def test_add_message_returns_message_with_role(self) -> None:
        s = Session.new()
        msg = s.add_message("user", "hello")
        assert msg.role is MessageRole.USER
        assert s.messages == [msg]

    def test_add_message_touches_session(self) -> None:
        s = Session.new()
        before = s.updated
        s.add_message("user", "hello")
        assert s.updated >= before


# ---------------------------------------------------------------------------
# Tags and children
# ---------------------------------------------------------------------------


class TestTags:
    def test_add_tag_is_idempotent(self) -> None:
        s = Session.new()
        s.add_tag("a")
        s.add_tag("b")
        s.add_tag("a")
        assert s.tags == ["a", "b"]

    def test_remove_tag(self) -> None:
        s = Session.new()
        s.add_tag("a")
        s.add_tag("b")
        s.remove_tag("a")
        assert s.tags == ["b"]

    def test_remove_missing_tag_is_noop(self) -> None:
        s = Session.new()
        s.remove_tag("missing")
        assert s.tags == []


class TestChildren:
    def test_add_child_is_idempotent(self) -> None:
        s = Session.new()
        s.add_child("c1")
        s.add_child("c1")
        s.add_child("c2")
        assert s.child_ids == ["c1", "c2"]
        assert s.has_branches()

    def test_remove_child(self) -> None:
        s = Session.new()
        s.add_child("c1")
        s.remove_child("c1")
        assert s.child_ids == []

    def test_is_ancestor_of(self) -> None:
        parent = Session.new()
        child = Session.new()
        child.parent_id = parent.id
        assert parent.is_ancestor_of(child)
        assert not child.is_ancestor_of(parent)

    def test_root_is_not_ancestor_of_other_root(self) -> None:
        assert not Session.new().is_ancestor_of(Session.new())


# ---------------------------------------------------------------------------
# create_branch
# ---------------------------------------------------------------------------


class TestCreateBranch:
    @pytest.mark.parametrize("index", [0, 1, 2, 3, 4])
    def test_branch_holds_prefix_with_fresh_ids(self, session: Session, index: int) -> None:
        branch = session.create_branch("b1", "alt", index)
        assert len(branch.messages) == index
        for copied, original in zip(branch.messages, session.messages):
            assert copied.role == original.role
            assert copied.content == original.content
            assert copied.id != original.id

    def test_branch_bookkeeping(self, session: Session) -> None:
        branch = session.create_branch("b1", "alt", 2)
        assert branch.id == "b1"
        assert branch.name == "alt"
        assert branch.branch_name == "alt"
        assert branch.parent_id == session.id
        assert branch.branch_point == 2
        assert branch.is_branch()
        assert branch.child_ids == []
        assert session.child_ids == ["b1"]
        assert session.is_ancestor_of(branch)

    def test_branch_copies_conversation_settings(self, session: Session) -> None:
        branch = session.create_branch("b1", "alt", 1)
        conv = branch.conversation
        assert conv.id == "b1"
        assert (conv.provider, conv.model) == ("anthropic", "claude")
        assert conv.system_prompt == "You are a reviewer."
        assert conv.temperature == 0.3
        assert conv.max_tokens == 1024

    def test_branch_copies_tags_and_config_by_value(self, session: Session) -> None:
        branch = session.create_branch("b1", "alt", 1)
        branch.add_tag("experiment")
        branch.config["theme"]["dark"] = False
        assert session.tags == ["work"]
        assert session.config["theme"] == {"dark": True}
        assert branch.tags == ["work", "experiment"]

    def test_parent_history_is_untouched(self, session: Session) -> None:
        ids = [m.id for m in session.messages]
        branch = session.create_branch("b1", "alt", 2)
        branch.add_message("user", "diverging")
        assert [m.id for m in session.messages] == ids

    @pytest.mark.parametrize("index", [-1, 5, 100])
    def test_out_of_range_index_rejected(self, session: Session, index: int) -> None:
        with pytest.raises(SessionValidationError):
            session.create_branch("b1", "alt", index)
        assert session.child_ids == []

    def test_empty_branch_id_rejected(self, session: Session) -> None:
        with pytest.raises(SessionValidationError):
            session.create_branch("", "alt", 1)

    def test_branch_id_equal_to_parent_rejected(self, session: Session) -> None:
        with pytest.raises(SessionValidationError):
            session.create_branch(session.id, "alt", 1)


# ---------------------------------------------------------------------------
# SessionInfo
# ---------------------------------------------------------------------------


class TestToInfo:
    def test_info_summarises_session(self, session: Session) -> None:
        session.add_child("c1")
        info = session.to_info()
        assert isinstance(info, SessionInfo)
        assert info.id == session.id
        assert info.name == "design review"
        assert info.message_count == 4
        assert info.model == "claude"
        assert info.provider == "anthropic"
        assert info.tags == ["work"]
        assert info.child_count == 1
        assert info.is_branch is False

    def test_info_for_branch(self, session: Session) -> None:
        info = session.create_branch("b1", "alt", 1).to_info()
        assert info.is_branch is True
        assert info.parent_id == session.id
        assert info.branch_name == "alt"

    def test_info_is_frozen(self, session: Session) -> None:
        info = session.to_info()
        with pytest.raises(Exception):
            info.name = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# BranchTree
# ---------------------------------------------------------------------------


def _node(name: str, *children: BranchTree) -> BranchTree:
    return BranchTree(session=Session.new(name, session_id=name).to_info(), children=list(children))


class TestBranchTree:
    def test_lone_root(self) -> None:
        tree = _node("root")
        assert tree.size() == 1
        assert tree.depth() == 0

    def test_walk_is_pre_order_with_depths(self) -> None:
        tree = _node("root", _node("a", _node("a1")), _node("b"))
        assert [(d, n.session.id) for d, n in tree.walk()] == [
            (0, "root"),
            (1, "a"),
            (2, "a1"),
            (1, "b"),
        ]
        assert tree.size() == 4
        assert tree.depth() == 2

    def test_find(self) -> None:
        tree = _node("root", _node("a", _node("a1")))
        found = tree.find("a1")
        assert found is not None
        assert found.session.id == "a1"
        assert tree.find("missing") is None
