"""Unit tests for chat_session_store.branching.merge."""
from __future__ import annotations

import pytest

from chat_session_store.branching.merge import (
    MergeOptions,
    MergeType,
    common_prefix_length,
    execute_merge,
)
from chat_session_store.errors import MergeError, SessionValidationError
from chat_session_store.session.state import Session


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(name: str, *turns: tuple[str, str]) -> Session:
    s = Session.new(name)
    for role, content in turns:
        s.add_message(role, content)
    return s


def _contents(session: Session) -> list[str]:
    return [m.content for m in session.messages]


@pytest.fixture()
def target() -> Session:
    return _session("target", ("user", "t1"), ("assistant", "t2"))


@pytest.fixture()
def source() -> Session:
    return _session("source", ("user", "s1"), ("assistant", "s2"))


# ---------------------------------------------------------------------------
# MergeType
# ---------------------------------------------------------------------------


class TestMergeType:
    def test_values(self) -> None:
        assert [t.value for t in MergeType] == ["continuation", "rebase", "cherry-pick"]


class TestCommonPrefixLength:
    def test_compares_role_and_content(self) -> None:
        a = _session("a", ("user", "x"), ("assistant", "y"), ("user", "z"))
        b = _session("b", ("user", "x"), ("assistant", "y"), ("user", "other"))
        assert common_prefix_length(a.messages, b.messages) == 2

    def test_role_mismatch_breaks_prefix(self) -> None:
        a = _session("a", ("user", "x"))
        b = _session("b", ("assistant", "x"))
        assert common_prefix_length(a.messages, b.messages) == 0


# ---------------------------------------------------------------------------
# Continuation
# ---------------------------------------------------------------------------


class TestContinuation:
    def test_in_place_appends_source(self, target: Session, source: Session) -> None:
        merged, result = execute_merge(target, source, MergeOptions())
        assert merged is target
        assert _contents(target) == ["t1", "t2", "s1", "s2"]
        assert result.merged_count == 2
        assert result.new_branch_id == ""
        assert result.session_id == target.id
        assert result.merge_type is MergeType.CONTINUATION

    def test_merged_messages_get_fresh_ids(self, target: Session, source: Session) -> None:
        execute_merge(target, source, MergeOptions())
        source_ids = {m.id for m in source.messages}
        assert not source_ids & {m.id for m in target.messages}
        assert len({m.id for m in target.messages}) == 4

    def test_source_is_never_mutated(self, target: Session, source: Session) -> None:
        before = source.model_copy(deep=True)
        execute_merge(target, source, MergeOptions())
        assert source == before

    def test_records_merge_metadata(self, target: Session, source: Session) -> None:
        merged, _ = execute_merge(target, source, MergeOptions())
        assert merged.metadata["merge_source"] == source.id
        assert merged.metadata["merge_target"] == target.id
        assert merged.metadata["merge_type"] == "continuation"
        assert "merged_at" in merged.metadata

    def test_create_branch_leaves_target_history_alone(self, target: Session, source: Session) -> None:
        merged, result = execute_merge(
            target, source, MergeOptions(create_branch=True, branch_name="combined")
        )
        assert merged is not target
        assert _contents(target) == ["t1", "t2"]
        assert _contents(merged) == ["t1", "t2", "s1", "s2"]
        assert merged.name == "combined"
        assert merged.parent_id == target.id
        assert merged.branch_point == 2
        assert result.new_branch_id == merged.id
        assert result.session_id == merged.id
        assert target.child_ids == [merged.id]

    def test_default_branch_name(self, target: Session, source: Session) -> None:
        merged, _ = execute_merge(target, source, MergeOptions(create_branch=True))
        assert merged.name == "Merge of source"

    def test_self_merge_rejected(self, target: Session) -> None:
        with pytest.raises(MergeError):
            execute_merge(target, target, MergeOptions())

    def test_empty_source_merges_nothing(self, target: Session) -> None:
        _, result = execute_merge(target, Session.new("empty"), MergeOptions())
        assert result.merged_count == 0
        assert _contents(target) == ["t1", "t2"]


# ---------------------------------------------------------------------------
# Rebase
# ---------------------------------------------------------------------------


class TestRebase:
    @pytest.fixture()
    def diverged(self) -> tuple[Session, Session]:
        base = _session("base", ("user", "q"), ("assistant", "a"))
        branch = base.create_branch("branch-1", "alt", 2)
        base.add_message("user", "main follow-up")
        branch.add_message("user", "alt follow-up")
        branch.add_message("assistant", "alt answer")
        return base, branch

    def test_replays_only_divergent_messages(self, diverged: tuple[Session, Session]) -> None:
        base, branch = diverged
        _, result = execute_merge(base, branch, MergeOptions(type=MergeType.REBASE))
        assert _contents(base) == ["q", "a", "main follow-up", "alt follow-up", "alt answer"]
        assert result.merged_count == 2

    def test_merge_point_requires_create_branch(self, diverged: tuple[Session, Session]) -> None:
        base, branch = diverged
        before = _contents(base)
        with pytest.raises(MergeError):
            execute_merge(base, branch, MergeOptions(type=MergeType.REBASE, merge_point=2))
        assert _contents(base) == before

    def test_merge_point_on_new_branch(self, diverged: tuple[Session, Session]) -> None:
        base, branch = diverged
        merged, result = execute_merge(
            base,
            branch,
            MergeOptions(type=MergeType.REBASE, merge_point=2, create_branch=True),
        )
        assert _contents(merged) == ["q", "a", "alt follow-up", "alt answer"]
        assert merged.branch_point == 2
        assert result.merged_count == 2
        assert _contents(base) == ["q", "a", "main follow-up"]

    @pytest.mark.parametrize("point", [-1, 4])
    def test_invalid_merge_point(self, diverged: tuple[Session, Session], point: int) -> None:
        base, branch = diverged
        with pytest.raises(SessionValidationError):
            execute_merge(
                base,
                branch,
                MergeOptions(type=MergeType.REBASE, merge_point=point, create_branch=True),
            )

    def test_nothing_to_replay(self) -> None:
        base = _session("base", ("user", "q"), ("assistant", "a"))
        branch = base.create_branch("branch-1", "alt", 2)
        with pytest.raises(MergeError):
            execute_merge(base, branch, MergeOptions(type=MergeType.REBASE))
        assert base.child_ids == ["branch-1"]


# ---------------------------------------------------------------------------
# Cherry-pick
# ---------------------------------------------------------------------------


class TestCherryPick:
    @pytest.fixture()
    def source(self) -> Session:
        return _session(
            "source",
            ("user", "s0"),
            ("assistant", "s1"),
            ("user", "s2"),
            ("assistant", "s3"),
        )

    def test_picks_in_given_order(self, target: Session, source: Session) -> None:
        _, result = execute_merge(
            target,
            source,
            MergeOptions(type=MergeType.CHERRY_PICK, message_indices=[3, 0]),
        )
        assert _contents(target) == ["t1", "t2", "s3", "s0"]
        assert result.merged_count == 2
        assert result.skipped_count == 0

    def test_skips_messages_already_present(self, target: Session, source: Session) -> None:
        target.add_message("assistant", "s1")
        _, result = execute_merge(
            target,
            source,
            MergeOptions(type=MergeType.CHERRY_PICK, message_indices=[1, 2]),
        )
        assert _contents(target) == ["t1", "t2", "s1", "s2"]
        assert result.merged_count == 1
        assert result.skipped_count == 1

    def test_empty_selection_rejected(self, target: Session, source: Session) -> None:
        with pytest.raises(MergeError):
            execute_merge(target, source, MergeOptions(type=MergeType.CHERRY_PICK))

    @pytest.mark.parametrize("indices", [[4], [-1], [0, 0]])
    def test_invalid_indices_rejected(
        self, target: Session, source: Session, indices: list[int]
    ) -> None:
        with pytest.raises(SessionValidationError):
            execute_merge(
                target,
                source,
                MergeOptions(type=MergeType.CHERRY_PICK, message_indices=indices),
            )
        assert _contents(target) == ["t1", "t2"]
