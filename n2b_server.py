"""
Number-to-Big Converter — MCP Server

Exposes tools to an MCP client (e.g. GitHub Copilot) via the Model Context
Protocol:

  1. convert_code    — convert a snippet of JS/TS and return the result
  2. convert_files   — convert files / globs / a tsconfig project in place
  3. list_operators  — show which operators map to which big.js methods
"""

from mcp.server.fastmcp import FastMCP
import os
import sys
from typing import List

from pydantic import ValidationError

# Ensure the n2b package is importable when run as a script
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from n2b.converter import Converter, keep_in_memory, save_file
from n2b.errors import ConversionError
from n2b.mappings import COMPOUND_ASSIGNMENT_OPERATORS, OPERATOR_METHODS
from n2b.options import ConversionOptions, ProjectOptions
from n2b.project import Project

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("Number-to-Big Converter")


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _format_diagnostics(diagnostics) -> str:
    if not diagnostics:
        return ""
    md = "\n#### ⚠ Warnings\n"
    for d in diagnostics:
        md += f"- `{d.path}:{d.line}` — {d.message}\n"
    return md


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Convert Code
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def convert_code(
    source_code: str,
    prepend_new: bool = False,
    append_to_number: bool = False,
    variables: str = "",
) -> str:
    """
    Converts the numeric expressions of a JS/TS snippet to big.js chains.

    Args:
        source_code:      The code to convert.
        prepend_new:      Emit `new Big(...)` instead of `Big(...)`.
        append_to_number: Append `.toNumber()` to each converted expression.
        variables:        Comma-separated variable names whose numeric
                          initializer should be wrapped (`let total = 0`).
    """
    try:
        options = ConversionOptions(
            prepend_new=prepend_new,
            append_to_number=append_to_number,
            variables=frozenset(_split_csv(variables)),
        )
    except ValidationError as e:
        return f"Error: invalid options: {e}"

    project = Project()
    source_file = project.add_source_code(source_code)
    converter = Converter(options, project)
    try:
        converter.convert(keep_in_memory)
    except ConversionError as e:
        return f"Error: {e}"

    result = "```ts\n" + source_file.get_full_text().rstrip() + "\n```\n"
    result += _format_diagnostics(converter.diagnostics)
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Convert Files
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def convert_files(
    sources: str = "",
    tsconfig: str = "",
    prepend_new: bool = False,
    append_to_number: bool = False,
    variables: str = "",
    dry_run: bool = False,
) -> str:
    """
    Converts the numeric expressions of source files to big.js chains.

    Files are rewritten in place unless dry_run is set.  The run stops at
    the first unsupported operator; files converted before it keep their
    changes.

    Args:
        sources:          Comma-separated file paths, directories or glob
                          patterns (e.g. "src/**/*.ts,!src/**/*.spec.ts").
        tsconfig:         Path to a tsconfig.json to import files from.
        prepend_new:      Emit `new Big(...)` instead of `Big(...)`.
        append_to_number: Append `.toNumber()` to each converted expression.
        variables:        Comma-separated variable names whose numeric
                          initializer should be wrapped.
        dry_run:          Report what would change without writing.
    """
    patterns = _split_csv(sources)
    if not patterns and not tsconfig.strip():
        return "Error: Nothing to convert. Pass `sources` or `tsconfig`."

    try:
        options = ProjectOptions(
            source=patterns or None,
            source_tsconfig=tsconfig.strip() or None,
            prepend_new=prepend_new,
            append_to_number=append_to_number,
            variables=frozenset(_split_csv(variables)),
        )
    except ValidationError as e:
        return f"Error: invalid options: {e}"

    converter = Converter(options)
    if len(converter.project) == 0:
        return "No source files found."

    converted = []

    def _on_converted(source_file):
        converted.append(source_file)
        if not dry_run:
            save_file(source_file)

    try:
        converter.convert(_on_converted)
    except ConversionError as e:
        done = len(converted)
        return (f"Error: {e}\n\n"
                f"Run aborted after {done} of {len(converter.project)} file(s).")

    modified = [f for f in converted if f.is_modified]
    prefix = "[Dry Run] Would convert" if dry_run else "Converted"
    result = f"**{prefix} {len(modified)} of {len(converted)} file(s).**\n\n"
    if modified:
        result += "| File | Status |\n|------|--------|\n"
        for f in converted:
            status = "modified" if f.is_modified else "unchanged"
            result += f"| `{f.path}` | {status} |\n"
    if dry_run:
        for f in modified:
            result += f"\n#### `{f.path}`\n```ts\n{f.get_full_text().rstrip()}\n```\n"
    result += _format_diagnostics(converter.diagnostics)
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — List Operators
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_operators() -> str:
    """Lists the supported operators and the big.js method each becomes."""
    result = "| Operator | big.js method |\n|----------|---------------|\n"
    for op, method in OPERATOR_METHODS.items():
        note = " (compound assignment)" if op in COMPOUND_ASSIGNMENT_OPERATORS else ""
        result += f"| `{op}` | `.{method}()`{note} |\n"
    result += "\n`a || b` is wrapped whole: `Big(a || b)`. Any other operator aborts the run."
    return result


if __name__ == "__main__":
    mcp.run()
