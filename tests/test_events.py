"""Tests des événements webhook: signature, normalisation des push, variantes."""

from __future__ import annotations

import pytest

from mdsync.domain.errors import InvalidPushEventError
from mdsync.domain.events import (
    IgnoredEvent,
    PingEvent,
    PushEvent,
    changed_files,
    classify_webhook,
    compute_signature,
    extract_branch,
    parse_push_event,
    verify_signature,
)
from tests.fakes import push_payload

SECRET = "s3cret"
PAYLOAD = b'{"ref":"refs/heads/main"}'


def test_valid_signature_passes():
    assert verify_signature(PAYLOAD, compute_signature(PAYLOAD, SECRET), SECRET)


def test_flipped_payload_byte_fails():
    signature = compute_signature(PAYLOAD, SECRET)
    tampered = PAYLOAD.replace(b"main", b"maim")
    assert not verify_signature(tampered, signature, SECRET)


def test_flipped_signature_char_fails():
    signature = compute_signature(PAYLOAD, SECRET)
    last = "0" if signature[-1] != "0" else "1"
    assert not verify_signature(PAYLOAD, signature[:-1] + last, SECRET)


@pytest.mark.parametrize("signature", [None, "", "sha256=abc", "x" * 200, "sha256=é"])
def test_bad_signatures_fail_without_raising(signature):
    assert verify_signature(PAYLOAD, signature, SECRET) is False


def test_signature_format():
    assert compute_signature("body", SECRET).startswith("sha256=")
    assert len(compute_signature("body", SECRET)) == len("sha256=") + 64


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        ("refs/heads/feature/x", ("feature/x", False)),
        ("refs/tags/v1.0", ("v1.0", True)),
        ("refs/pull/12/merge", ("refs/pull/12/merge", False)),
    ],
)
def test_extract_branch(ref, expected):
    assert extract_branch(ref) == expected


def test_parse_push_event_flattens_commits():
    raw = push_payload("refs/heads/main", added=["a.mdx"], modified=["b.mdx"], after="f00")
    raw["commits"].append(
        {"id": "2", "added": ["c.mdx", "a.mdx"], "modified": [], "removed": ["old.mdx"]}
    )
    event = parse_push_event(raw)
    assert event.branch == "main"
    assert event.sha == "f00"
    assert event.repository == "acme/docs"
    assert len(event.commits) == 2

    files = changed_files(event)
    assert files.added == ["a.mdx", "c.mdx"]
    assert files.modified == ["b.mdx"]
    assert files.removed == ["old.mdx"]


def test_changed_files_can_filter_documents():
    event = parse_push_event(push_payload(added=["a.mdx", "logo.png", "b.md"]))
    assert changed_files(event, documents_only=True).added == ["a.mdx"]
    assert changed_files(event, documents_only=True, extensions=(".mdx", ".md")).added == [
        "a.mdx",
        "b.md",
    ]


@pytest.mark.parametrize("missing", ["ref", "after", "repository"])
def test_incomplete_push_payload_is_rejected(missing):
    raw = push_payload()
    del raw[missing]
    with pytest.raises(InvalidPushEventError):
        parse_push_event(raw)


def test_classify_webhook_variants():
    assert isinstance(classify_webhook("ping", {"zen": "Keep it simple"}), PingEvent)
    assert classify_webhook("issues", {}) == IgnoredEvent(event_type="issues")
    push = classify_webhook("push", push_payload())
    assert isinstance(push, PushEvent)
    assert push.event.branch == "main"
