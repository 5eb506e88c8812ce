"""Tests de la correspondance branche -> environnement et des helpers de déploiement."""

from __future__ import annotations

import pytest

from mdsync.domain.deployment import (
    DeploymentResult,
    EnvironmentName,
    branch_to_slug,
    content_id_for_path,
    is_document_file,
    map_branch_to_environment,
    namespace_for,
)

BASE = "https://docs.example.com"


@pytest.mark.parametrize("branch", ["main", "master"])
def test_production_branches(branch):
    env = map_branch_to_environment(branch, base_url=BASE)
    assert env.name is EnvironmentName.PRODUCTION
    assert env.url == BASE


def test_pull_request_ref_maps_to_preview_with_number():
    env = map_branch_to_environment("refs/pull/42/head", base_url=BASE)
    assert env.name is EnvironmentName.PREVIEW
    assert env.pr_number == 42
    assert env.url == f"{BASE}/preview/pr-42"


def test_other_branches_map_to_slugged_preview():
    env = map_branch_to_environment("Feature/New_Docs", base_url=BASE + "/")
    assert env.name is EnvironmentName.PREVIEW
    assert env.pr_number is None
    assert env.url == f"{BASE}/preview/feature-new-docs"


def test_custom_mapping_wins():
    env = map_branch_to_environment("main", {"main": "development"})
    assert env.name is EnvironmentName.DEVELOPMENT
    assert env.url is None


def test_slug_collapses_dashes():
    assert branch_to_slug("fix//Weird__name") == "fix-weird-name"


def test_namespaces_per_environment():
    assert namespace_for(map_branch_to_environment("main"), "prod") == "prod"
    assert namespace_for(map_branch_to_environment("refs/pull/7/merge")) == "pr-7"
    assert namespace_for(map_branch_to_environment("feat/x")) == "preview-feat-x"
    dev = map_branch_to_environment("develop", {"develop": "development"})
    assert namespace_for(dev) == "development"


def test_document_helpers():
    assert is_document_file("docs/a.mdx")
    assert not is_document_file("docs/a.md")
    assert is_document_file("docs/a.md", (".mdx", ".md"))
    assert content_id_for_path("docs/guide/intro.mdx") == "docs/guide/intro"
    assert content_id_for_path("notes.md") == "notes"


def test_result_success_depends_on_errors():
    result = DeploymentResult(deployed_files=["a.mdx"])
    assert result.success
    result.errors.append("Failed to deploy b.mdx: boom")
    assert not result.success
    assert result.as_dict()["success"] is False
