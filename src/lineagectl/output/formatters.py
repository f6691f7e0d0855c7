"""Human/JSON rendering of ServiceResult.

JSON mode dumps the whole result. Human mode prints an ``OK``/``ERROR``
headline and then an op-specific body: a tree for ``tree``, raw content for
``export_graph``, a step list for ``replay``, key-value pairs otherwise.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.tree import Tree

from lineagectl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from lineagectl.services.result import ServiceResult


def format_result(
    result: ServiceResult,
    *,
    json_output: bool = False,
    quiet: bool = False,
    no_color: bool = False,
) -> str:
    """Format a ServiceResult for display."""
    if json_output:
        return result.model_dump_json(indent=2)

    if result.ok and result.op == "export_graph":
        return str(result.data.get("content", "")).rstrip("\n")

    console = create_console(no_color=no_color)
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        code = result.error.code if result.error else "ERROR"
        tag = escape(f"[{code}]")
        console.print(f"[lin.error]ERROR[/]: [lin.op]{result.op}[/] {tag} {escape(message)}")
        if result.op == "replay" and not quiet:
            _render_steps(console, result.data.get("steps", []))
        return get_output(console).rstrip("\n")

    if quiet:
        return ""

    console.print(f"[lin.ok]OK[/]: [lin.op]{result.op}[/]")
    if result.op == "tree":
        console.print(_build_tree(result.data["tree"], result.data.get("stem")))
    elif result.op == "replay":
        _render_steps(console, result.data.get("steps", []))
        console.print(
            f"  [lin.key]applied[/]: {result.data.get('applied', 0)}"
            f"/{result.data.get('total', 0)}, "
            f"[lin.key]nodes[/]: {result.data.get('node_count', 0)}"
        )
    else:
        for key, value in result.data.items():
            console.print(f"  [lin.key]{key}[/]: {escape(_format_value(value))}")
    return get_output(console).rstrip("\n")


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _render_steps(console: Console, steps: list[dict[str, Any]]) -> None:
    for step in steps:
        marker = "[lin.ok]ok[/]" if step["ok"] else "[lin.error]failed[/]"
        line = f"  {step['index']:>3} {step['op']:<8} {marker}"
        if not step["ok"]:
            line += f" {step.get('code', '')}: {escape(str(step.get('message', '')))}"
        console.print(line)


def _build_tree(node: dict[str, Any], stem: Any) -> Tree:
    """Convert the nested dicts of a ``tree`` result into a rich Tree."""
    root = Tree(_node_label(node, stem))
    # Explicit stack of (result dict, rich Tree) pairs.
    pending = [(node, root)]
    while pending:
        current, branch = pending.pop()
        for child in current.get("children", []):
            pending.append((child, branch.add(_node_label(child, stem))))
    return root


def _node_label(node: dict[str, Any], stem: Any) -> str:
    text = escape(str(node["id"]))
    if node["id"] == stem:
        return f"[lin.stem]{text}[/] [lin.key](stem)[/]"
    if node.get("repeat"):
        return f"[lin.repeat]{text} (see above)[/]"
    if node.get("truncated"):
        return f"[lin.id]{text}[/] [lin.key]...[/]"
    return f"[lin.id]{text}[/]"
