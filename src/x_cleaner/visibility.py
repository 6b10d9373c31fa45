"""Hide and show feed items through their inline style.

Hiding writes a fixed bundle of declarations so the item takes no layout
space. Showing removes the same bundle, leaving the page's own styling in
charge. Each call rewrites the style attribute once, so the bundle is
never half-applied.
"""

from bs4 import Tag

HIDDEN_STYLE = {
    "visibility": "hidden",
    "height": "0",
    "overflow": "hidden",
    "margin": "0",
    "padding": "0",
}


def _split_declarations(style: str) -> list[str]:
    """Split on ';' outside quoted strings and parentheses."""
    parts: list[str] = []
    current: list[str] = []
    quote = None
    depth = 0
    for char in style:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")" and depth:
            depth -= 1
        elif char == ";" and not depth:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def parse_style(style: str | None) -> dict[str, str]:
    """Parse an inline style attribute into an ordered property map."""
    declarations: dict[str, str] = {}
    for part in _split_declarations(style or ""):
        name, sep, value = part.partition(":")
        if sep and name.strip():
            declarations[name.strip().lower()] = value.strip()
    return declarations


def format_style(declarations: dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations.items())


def _write_style(node: Tag, declarations: dict[str, str]) -> None:
    if declarations:
        node["style"] = format_style(declarations)
    elif "style" in node.attrs:
        del node["style"]


def hide(node: Tag) -> None:
    declarations = parse_style(node.get("style"))
    declarations.update(HIDDEN_STYLE)
    _write_style(node, declarations)


def show(node: Tag) -> None:
    declarations = parse_style(node.get("style"))
    for name in HIDDEN_STYLE:
        declarations.pop(name, None)
    _write_style(node, declarations)


def apply_visibility(node: Tag, hidden: bool) -> None:
    if hidden:
        hide(node)
    else:
        show(node)


def is_hidden(node: Tag) -> bool:
    return parse_style(node.get("style")).get("visibility") == "hidden"
