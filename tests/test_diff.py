"""Tests du diff/patch positionnel ligne à ligne."""

import pytest

from mdsync.domain.diff import DiffOpType, apply_diff, compute_diff


def test_identical_content_has_no_changes():
    assert not compute_diff("a\nb", "a\nb").has_changes


def test_replace_operation_points_at_line_start():
    diff = compute_diff("a\nbb\nc", "a\nXX\nc")
    assert len(diff.operations) == 1
    op = diff.operations[0]
    assert op.type is DiffOpType.REPLACE
    assert op.position == 2
    assert op.length == 2
    assert op.content == "XX"


def test_trailing_lines_become_inserts_or_deletes():
    grow = compute_diff("a", "a\nb")
    assert [op.type for op in grow.operations] == [DiffOpType.INSERT]
    shrink = compute_diff("a\nb\nc", "a")
    assert [op.type for op in shrink.operations] == [DiffOpType.DELETE, DiffOpType.DELETE]
    assert shrink.operations[0].length == 2


@pytest.mark.parametrize(
    ("old", "new"),
    [
        ("a\nb\nc", "a\nB\nc"),
        ("a\nb\nc", "a\nb\nc\nd\ne"),
        ("a\nb\nc\nd", "a"),
        ("", "first\nsecond"),
        ("one\ntwo", ""),
        ("---\ntitle: A\n---\nbody", "---\ntitle: B\n---\nbody\nmore"),
        ("x\n\ny\n", "x\ny\n\n"),
    ],
)
def test_apply_reconstructs_new_content(old, new):
    assert apply_diff(old, compute_diff(old, new)) == new


def test_apply_empty_diff_returns_old():
    assert apply_diff("same", compute_diff("same", "same")) == "same"
