"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from formtree.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from formtree.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    Item ids, one per line, where the operation produced or listed any;
    otherwise a bare status line.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "snapshot":
        return "\n".join(_walk_ids(result.data.get("items", [])))
    if result.op == "templates":
        return "\n".join(t["id"] for t in result.data.get("templates", []))
    created = result.data.get("created_ids")
    if created:
        return "\n".join(created)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _walk_ids(items: list[dict[str, Any]]) -> list[str]:
    ids: list[str] = []
    for item in items:
        ids.append(str(item.get("id", "")))
        ids.extend(str(child.get("id", "")) for child in item.get("children", []))
    return ids


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="ft.ok")
    op = Text(f"  {result.op}", style="ft.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value pair."""
    k = Text(f"  {key}: ", style="ft.key")
    if key == "id" or key.endswith("_id") or key.endswith("_ids"):
        v = Text(str(value), style="ft.id")
    elif key in ("path", "source", "output"):
        v = Text(str(value), style="ft.path")
    elif key in ("name", "description"):
        v = Text(str(value), style="ft.title")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 100:
        style = "bold red"
    elif duration > 10:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    label = Text("ERROR", style="ft.error")
    op = Text(f"  {result.op}{code}", style="ft.op")
    console.print(label, op, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Edit renderers ────────────────────────────────────────────────────


def _render_edit(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a committed (or ignored) editing command."""
    d = result.data
    _status_line(console, result)
    if not d.get("applied", True):
        _field(console, "applied", "no (tree unchanged)")
    elif d.get("description"):
        _field(console, "description", d["description"])
    for key in ("created_ids", "removed_ids"):
        if d.get(key):
            _field(console, key, ", ".join(d[key]))
    if "field_count" in d:
        _field(console, "form", f"{d['section_count']} sections, {d['field_count']} fields")
    if verbose:
        _field(console, "can_undo", d.get("can_undo"))
        _field(console, "can_redo", d.get("can_redo"))
        _render_meta(console, result)


def _render_history(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render undo / redo."""
    d = result.data
    _status_line(console, result)
    _field(console, "action", d.get("action", ""))
    _field(console, "description", d.get("description", ""))
    if verbose:
        _render_meta(console, result)


def _render_script(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render an edit script run as a numbered list of steps."""
    d = result.data
    _status_line(console, result)
    for step in d.get("results", []):
        marker = "[ft.ok]+[/ft.ok]" if step.get("applied") else "[dim]=[/dim]"
        text = step.get("description") or step.get("op", "")
        console.print(f"  {marker} {step['step']:>3}  {text}")
    _field(console, "steps_run", d.get("steps_run", 0))
    if verbose:
        _render_meta(console, result)


# ── Form renderers ────────────────────────────────────────────────────


def _field_label(item: dict[str, Any], previews: dict[str, str], *, verbose: bool) -> Text:
    label = Text(str(item.get("label") or "(blank)"), style=style_for_kind("field"))
    if item.get("isRequired"):
        label.append("*", style="ft.required")
    label.append(f"  {item.get('type', '')}", style="ft.type")
    if item.get("isSystemField"):
        label.append("  system", style="ft.system")
    elif item.get("dataTypeLocked"):
        label.append("  locked", style="ft.system")
    preview = previews.get(str(item.get("id")))
    if preview:
        label.append(f"  {preview}", style="ft.preview")
    if verbose:
        label.append(f"  {item.get('id')}", style="ft.id")
    return label


def _section_label(item: dict[str, Any], *, verbose: bool) -> Text:
    marker = "v" if item.get("isExpanded", True) else ">"
    label = Text(f"{marker} {item.get('label') or '(blank)'}", style=style_for_kind("section"))
    if item.get("isSystem"):
        label.append("  system", style="ft.system")
    if verbose:
        label.append(f"  {item.get('id')}", style="ft.id")
    return label


def _render_snapshot(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the form as a Rich tree; collapsed sections hide their fields."""
    d = result.data
    previews: dict[str, str] = d.get("previews", {})
    root = Tree(Text(str(d.get("name", "Form")), style="ft.title"))
    for item in d.get("items", []):
        if item.get("kind") == "section":
            node = root.add(_section_label(item, verbose=verbose))
            children = item.get("children", [])
            if item.get("isExpanded", True) or verbose:
                for child in children:
                    node.add(_field_label(child, previews, verbose=verbose))
            elif children:
                node.add(Text(f"({len(children)} fields hidden)", style="dim"))
        else:
            root.add(_field_label(item, previews, verbose=verbose))
    console.print(root)
    summary = f"{d.get('section_count', 0)} sections, {d.get('field_count', 0)} fields"
    if d.get("dirty"):
        summary += ", unsaved changes"
    console.print(Text(summary, style="dim"))
    if verbose:
        for index, description in enumerate(d.get("history", [])):
            console.print(f"  [dim]{index:>3}[/dim]  {description}")
        _render_meta(console, result)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a document check: counts, then warnings."""
    d = result.data
    _status_line(console, result)
    for key in ("path", "name"):
        if key in d:
            _field(console, key, d[key])
    counts = f"{d.get('section_count', 0)} sections, {d.get('field_count', 0)} fields"
    _field(console, "form", counts)
    if d.get("standalone_fields"):
        _field(console, "standalone_fields", len(d["standalone_fields"]))
    if d.get("system_fields"):
        _field(console, "system_fields", ", ".join(d["system_fields"]))
    if not result.warnings:
        console.print("[ft.ok]OK[/ft.ok]  No issues found.")
    if verbose:
        _render_meta(console, result)


def _render_templates(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the template catalog as a table."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="ft.id", no_wrap=True)
    table.add_column("Name", style="ft.title")
    table.add_column("Category")
    table.add_column("Fields")
    for template in result.data.get("templates", []):
        fields = template.get("fields", [])
        table.add_row(
            template["id"],
            template["name"],
            template.get("category", ""),
            "\n".join(fields) if verbose else str(len(fields)),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', 0)} templates")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_EDIT_OPS = (
    "toggle_section",
    "rename_section",
    "delete_section",
    "insert_section",
    "rename_field",
    "delete_field",
    "update_field",
    "lock_field_type",
    "insert_field",
    "insert_template",
    "bulk",
    "move",
    "resolve_drag",
    "drag_drop",
)

_OP_RENDERERS: dict[str, Any] = {
    **{op: _render_edit for op in _EDIT_OPS},
    "undo": _render_history,
    "redo": _render_history,
    "run_script": _render_script,
    "snapshot": _render_snapshot,
    "check": _render_check,
    "templates": _render_templates,
}
