"""Tests for dependency capture inside translation tags."""

from __future__ import annotations

import pytest

from jsxlate.dependencies import is_component_name
from jsxlate.errors import UsageError
from jsxlate.fragments import extract_fragments


def _deps(jsx: str) -> tuple[str, ...]:
    (fragment,) = extract_fragments("src/App.jsx", f"const x = {jsx};\n".encode("utf-8"))
    return fragment.deps


@pytest.mark.parametrize(
    ("jsx", "expected"),
    [
        ("<T>{42}</T>", ()),
        ("<T>{FOO}</T>", ("FOO",)),
        ("<T>{A}{B}{C}</T>", ("A", "B", "C")),
        ("<T>{C}{B}{A}{B}{C}</T>", ("A", "B", "C")),
        ("<T>{A.B.C}</T>", ("A",)),
        ("<T>{items[index]}</T>", ("items",)),
        ("<T><span>hey</span></T>", ()),
        ("<T><A/></T>", ("A",)),
        ("<T><Foo.Bar/></T>", ("Bar", "Foo")),
        ("<T><Foo.Bar>x</Foo.Bar></T>", ("Bar", "Foo")),
        ("<T><foo.bar/></T>", ()),
        ("<T><foo.Bar/></T>", ("Bar",)),
        ("<T><Link to={url}>home</Link></T>", ("Link", "url")),
        ("<T deps={[B]}>{A}</T>", ("A", "B")),
        ("<T><div xyzzy={{foooz: BAR}}></div></T>", ("BAR",)),
        ("<T><div style={{ color }}></div></T>", ("color",)),
    ],
)
def test_captured_dependencies(jsx: str, expected: tuple[str, ...]) -> None:
    assert _deps(jsx) == expected


def test_dependency_order_does_not_change_key() -> None:
    first = extract_fragments("a.jsx", b"const x = <T>{A}{B}</T>;\n")[0]
    second = extract_fragments("a.jsx", b"const x = <T deps={[B, A]}>{A}{B}</T>;\n")[0]
    assert first.deps == second.deps == ("A", "B")


def test_this_is_rejected() -> None:
    with pytest.raises(UsageError, match="'this' is not allowed"):
        _deps("<T>{this.state}</T>")


@pytest.mark.parametrize(
    "jsx",
    [
        "<T>{items.map((item) => item)}</T>",
        "<T>{items.map(function (item) { return item; })}</T>",
    ],
)
def test_inline_functions_are_rejected(jsx: str) -> None:
    with pytest.raises(UsageError, match="cannot have inline functions"):
        _deps(jsx)


def test_component_names() -> None:
    assert is_component_name("Foo")
    assert is_component_name("_private")
    assert not is_component_name("div")
    assert not is_component_name("")
