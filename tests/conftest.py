"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncIterator, Iterable

import pytest

from uiforge.core import Settings, safe_json_dumps
from uiforge.tree import Node


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["UIFORGE_LOG_LEVEL"] = "DEBUG"
    os.environ["UIFORGE_HISTORY_LIMIT"] = "0"


# ============================================================================
# Helpers
# ============================================================================

def ndjson(records: Iterable[dict]) -> str:
    """Encode records one per line."""
    return "".join(safe_json_dumps(record) + "\n" for record in records)


async def agen(fragments: Iterable[str]) -> AsyncIterator[str]:
    """Async fragment stream over a fixed list."""
    for fragment in fragments:
        yield fragment


def child_ids(tree: Node) -> dict[str, list[str]]:
    """id -> ordered child ids for every node in a tree."""
    result = {tree.id: [child.id for child in tree.children]}
    for child in tree.children:
        result.update(child_ids(child))
    return result


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return Settings(log_level="DEBUG", history_limit=0, validate_edits=True)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def sample_records():
    """Flat records for a small landing page, root first."""
    return [
        {"id": "root", "parentId": None, "type": "div", "styles": "min-h-screen flex flex-col"},
        {"id": "header", "parentId": "root", "type": "header", "styles": "p-4"},
        {"id": "title", "parentId": "header", "type": "h1", "styles": "text-3xl", "content": "Hello"},
        {"id": "main", "parentId": "root", "type": "main", "styles": "flex-1"},
        {"id": "hero", "parentId": "main", "type": "section", "styles": "py-12"},
        {"id": "tagline", "parentId": "hero", "type": "p", "styles": "uppercase text-sm", "content": "Build fast"},
        {
            "id": "cta",
            "parentId": "hero",
            "type": "button",
            "styles": "rounded-xl",
            "content": "Start",
            "attributes": {"aria-label": "Start now"},
        },
        {"id": "features", "parentId": "main", "type": "section", "styles": "grid"},
        {"id": "footer", "parentId": "root", "type": "footer", "styles": "p-4"},
    ]


@pytest.fixture
def sample_stream(sample_records):
    """NDJSON text for the sample records, wrapped in a markdown fence."""
    return "```json\n" + ndjson(sample_records) + "```\n"


@pytest.fixture
def sample_tree():
    """Settled tree matching sample_records."""
    return Node(
        id="root",
        kind="div",
        style_tokens="min-h-screen flex flex-col",
        children=[
            Node(
                id="header",
                kind="header",
                style_tokens="p-4",
                children=[Node(id="title", kind="h1", style_tokens="text-3xl", content="Hello")],
            ),
            Node(
                id="main",
                kind="main",
                style_tokens="flex-1",
                children=[
                    Node(
                        id="hero",
                        kind="section",
                        style_tokens="py-12",
                        children=[
                            Node(id="tagline", kind="p", style_tokens="uppercase text-sm", content="Build fast"),
                            Node(
                                id="cta",
                                kind="button",
                                style_tokens="rounded-xl",
                                content="Start",
                                attributes={"aria-label": "Start now"},
                            ),
                        ],
                    ),
                    Node(id="features", kind="section", style_tokens="grid"),
                ],
            ),
            Node(id="footer", kind="footer", style_tokens="p-4"),
        ],
    )
