"""Tests de l'extraction du frontmatter YAML."""

import pytest

from mdsync.domain.frontmatter import parse_frontmatter, split_frontmatter


def test_parses_yaml_block_and_normalizes_linked_data_keys():
    doc = "---\n'@type': BlogPost\n'@id': https://example.com/a\ntitle: Hello\n---\n# Hello\n"
    data = parse_frontmatter(doc)
    assert data == {"$type": "BlogPost", "$id": "https://example.com/a", "title": "Hello"}


def test_split_returns_body_after_block():
    data, body = split_frontmatter("---\ntitle: A\n---\nbody line\n")
    assert data == {"title": "A"}
    assert body == "body line\n"


def test_missing_block_yields_empty_data():
    data, body = split_frontmatter("# Just markdown")
    assert data == {}
    assert body == "# Just markdown"


def test_invalid_yaml_never_raises():
    doc = "---\ntitle: [unclosed\n---\nbody"
    assert parse_frontmatter(doc) == {}


def test_non_mapping_block_yields_empty_data():
    data, body = split_frontmatter("---\n- a\n- b\n---\nbody")
    assert data == {}
    assert body == "body"


def test_dollar_keys_pass_through():
    assert parse_frontmatter("---\n$type: Doc\n---\n") == {"$type": "Doc"}


@pytest.mark.parametrize("date", ["2026-02-30", "2026-13-01"])
def test_impossible_date_yields_empty_data(date):
    doc = f"---\ntitle: A\ndate: {date}\n---\nhello"
    assert parse_frontmatter(doc) == {}
    assert split_frontmatter(doc) == ({}, doc)
