"""Resolve hook: joining specifiers against remote parent modules."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from HttpsLoader.errors import NotHandledError
from HttpsLoader.loader import LoadContext, ResolveResult, resolve

PARENT = "https://unpkg.com/histar@0.4.1/src/index.mjs"


@pytest.mark.parametrize(
    ("specifier", "expected"),
    [
        ("./util.mjs", "https://unpkg.com/histar@0.4.1/src/util.mjs"),
        ("../package.json", "https://unpkg.com/histar@0.4.1/package.json"),
        ("/preact@10/dist/preact.mjs", "https://unpkg.com/preact@10/dist/preact.mjs"),
        ("https://esm.sh/react", "https://esm.sh/react"),
    ],
)
def test_specifiers_join_against_remote_parent(specifier: str, expected: str) -> None:
    next_resolve = AsyncMock()

    result = asyncio.run(resolve(specifier, LoadContext(parent_url=PARENT), next_resolve))

    assert result == ResolveResult(url=expected, short_circuit=True)
    next_resolve.assert_not_awaited()


def test_host_shaped_context_is_accepted() -> None:
    result = asyncio.run(resolve("./a.mjs", {"parentURL": PARENT, "importAttributes": {}}))

    assert result.url == "https://unpkg.com/histar@0.4.1/src/a.mjs"


@pytest.mark.parametrize("parent", [None, "file:///srv/app/main.mjs"])
def test_local_parents_are_delegated(parent) -> None:
    context = {"parentURL": parent, "conditions": ["import"]}
    next_resolve = AsyncMock(return_value={"url": "file:///srv/app/dep.mjs"})

    result = asyncio.run(resolve("./dep.mjs", context, next_resolve))

    assert result == {"url": "file:///srv/app/dep.mjs"}
    next_resolve.assert_awaited_once_with("./dep.mjs", context)


def test_delegation_without_next_hook_raises() -> None:
    with pytest.raises(NotHandledError):
        asyncio.run(resolve("./dep.mjs", LoadContext()))
