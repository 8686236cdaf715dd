"""Tests for group classification."""

from __future__ import annotations

from pathlib import Path

import pytest

from perflens.models import GROUP_ORDER, FileGroup, SourceFile
from perflens.planning import classify, group_files


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/App.tsx", FileGroup.COMPONENT),
        ("src/Card.jsx", FileGroup.COMPONENT),
        ("src/react-hooks.js", FileGroup.COMPONENT),
        ("src/react/hooks.ts", FileGroup.COMPONENT),
        ("src/React/store.mjs", FileGroup.COMPONENT),
        ("src/react/theme.css", FileGroup.STYLESHEET),
        ("src/Widget.vue", FileGroup.TEMPLATE),
        ("src/Page.svelte", FileGroup.TEMPLATE),
        ("src/Layout.astro", FileGroup.TEMPLATE),
        ("src/api.ts", FileGroup.TYPESCRIPT),
        ("src/util.js", FileGroup.JAVASCRIPT),
        ("src/util.mjs", FileGroup.JAVASCRIPT),
        ("src/site.scss", FileGroup.STYLESHEET),
        ("public/index.html", FileGroup.MARKUP),
        ("src/data.json", None),
    ],
)
def test_classify_assigns_single_group(path: str, expected: FileGroup | None) -> None:
    extension = "." + path.rsplit(".", 1)[-1]
    assert classify(path, extension) is expected


def test_group_order_is_fixed() -> None:
    assert [group.value for group in GROUP_ORDER] == [
        "component",
        "template",
        "javascript",
        "typescript",
        "stylesheet",
        "markup",
    ]


def test_group_files_drops_unclassified_and_preserves_order() -> None:
    def _file(relative: str) -> SourceFile:
        extension = "." + relative.rsplit(".", 1)[-1]
        return SourceFile(
            path=Path("/virtual") / relative,
            relative_path=relative,
            size=1,
            extension=extension,
            group=classify(relative, extension),
        )

    files = [_file("b.ts"), _file("x.json"), _file("a.ts"), _file("c.tsx")]

    groups = group_files(files)

    assert [item.relative_path for item in groups[FileGroup.TYPESCRIPT]] == ["b.ts", "a.ts"]
    assert [item.relative_path for item in groups[FileGroup.COMPONENT]] == ["c.tsx"]
    assert sum(len(members) for members in groups.values()) == 3
