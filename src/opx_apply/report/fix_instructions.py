"""Markdown failure reports that hand apply results back to an LLM.

The report lists what already landed (so corrected edits start from the
current file state), groups failed rows by file with their attempted
change blocks, and flags cascade failures.
"""

from opx_apply.models import ChangeBlock, PreviewData, PreviewTableRow, RowApplyResult

FIX_GUIDANCE = [
    "# Fix Instructions",
    "",
    "Key points to fix:",
    "1. Search patterns that failed to match must match the CURRENT file content",
    "2. Cascade failures: earlier operations changed the file, so update the patterns to match",
    "3. Read the whole file before writing new search patterns",
    "",
    "For cascade failures:",
    "- Write search patterns against the file state AFTER the earlier operations",
    '- Use occurrence="last" or occurrence="N" when the pattern repeats',
    "- Include more surrounding lines to make the pattern unique",
    "",
]


def _status(result: RowApplyResult | None) -> str:
    if result is None:
        return "NOT APPLIED"
    return "SUCCESS" if result.success else "FAILED"


def _fenced(text: str, lang: str = "") -> list[str]:
    return [f"```{lang}", text, "```"]


def _change_block_details(number: int, block: ChangeBlock, default: str) -> list[str]:
    lines = ["", f"Change block {number}: {block.description or default}"]
    if block.search:
        lines.append("Search pattern (NOT FOUND):")
        lines.extend(_fenced(block.search))
    lines.append("Intended replacement:")
    lines.extend(_fenced(block.content))
    return lines


def _header(success: list[RowApplyResult], failed: list[RowApplyResult], total: int) -> list[str]:
    return [
        "# Apply Results",
        "",
        f"- Successful operations: {len(success)}",
        f"- Failed operations: {len(failed)}",
        f"- Total operations: {total}",
        "",
        "---",
        "",
    ]


def _successful_section(success: list[RowApplyResult], preview: PreviewData) -> list[str]:
    if not success:
        return []
    lines = [
        "## Successfully Applied Operations",
        "",
        "These files have ALREADY been modified. Account for these changes when fixing the failed operations.",
        "",
    ]
    for result in success:
        row = _row(preview, result.row_index)
        lines.append(f"### Row {result.row_index + 1}: {result.action.value} `{result.path}`")
        if row is not None:
            lines.append(f"- Description: {row.description}")
            if row.change_blocks:
                lines.append("- Applied changes:")
                for number, block in enumerate(row.change_blocks, 1):
                    lines.append(f"  {number}. {block.description or row.description}")
        lines.append("")
    lines.extend(["---", ""])
    return lines


def _failed_row_details(
    result: RowApplyResult,
    row: PreviewTableRow | None,
    results: list[RowApplyResult],
) -> list[str]:
    lines = [
        f"#### Row {result.row_index + 1}: {result.action.value}",
        f"- Error: {result.message}",
    ]
    if result.is_cascade_failure:
        earlier = [
            other for other in results
            if other.path == result.path and other.success and other.row_index != result.row_index
        ]
        lines.append("- **CASCADE FAILURE**: earlier row(s) modified this file")
        if earlier:
            lines.append("- Earlier successful operations:")
            lines.extend(f"  - Row {other.row_index + 1}: {other.action.value}" for other in earlier)
    if row is not None and row.change_blocks:
        lines.extend(["", "**Attempted changes:**"])
        for number, block in enumerate(row.change_blocks, 1):
            lines.extend(_change_block_details(number, block, row.description))
    lines.extend(["", "---", ""])
    return lines


def _failed_section(
    failed: list[RowApplyResult],
    preview: PreviewData,
    results: list[RowApplyResult],
) -> list[str]:
    if not failed:
        return []
    by_file: dict[str, list[RowApplyResult]] = {}
    for result in failed:
        by_file.setdefault(result.path, []).append(result)

    lines = ["## Failed Operations (NEEDS FIXING)", ""]
    for path, file_failures in by_file.items():
        lines.extend([f"### File: {path}", "", "**Failed operations on this file:**", ""])
        for result in file_failures:
            lines.extend(_failed_row_details(result, _row(preview, result.row_index), results))
    return lines


def _opx_reference(preview: PreviewData, results: list[RowApplyResult]) -> list[str]:
    by_index = {result.row_index: result for result in results}
    lines = ["## Attempted OPX (for reference)", "", "```xml"]
    for index, row in enumerate(preview.rows):
        lines.append(f"<!-- {_status(by_index.get(index))} Row {index + 1}: {row.action.value} {row.path} -->")
        for block in row.change_blocks:
            if block.search:
                lines.extend(["<find>", "<<<", block.search, ">>>", "</find>"])
            lines.extend(["<put>", "<<<", block.content, ">>>", "</put>"])
    lines.extend(["```", ""])
    return lines


def _row(preview: PreviewData, index: int) -> PreviewTableRow | None:
    if 0 <= index < len(preview.rows):
        return preview.rows[index]
    return None


def build_fix_instructions(
    preview: PreviewData,
    results: list[RowApplyResult],
    include_opx: bool = True,
    response_text: str | None = None,
) -> str:
    """Render apply results as a Markdown report for a follow-up request.

    Args:
        preview: Preview rows of the batch that was applied.
        results: Row results, one per attempted row.
        include_opx: Append the attempted find/put payloads and ask for OPX back.
        response_text: Original pasted response, appended verbatim when given.

    Returns:
        Markdown text. Empty string when there are no results.
    """
    if not results:
        return ""

    ordered = sorted(results, key=lambda result: result.row_index)
    success = [result for result in ordered if result.success]
    failed = [result for result in ordered if not result.success]

    lines = _header(success, failed, len(ordered))
    lines.extend(_successful_section(success, preview))
    lines.extend(_failed_section(failed, preview, ordered))

    if include_opx:
        lines.extend(_opx_reference(preview, ordered))
        if response_text:
            lines.extend(["## Original Response", ""])
            lines.extend(_fenced(response_text, "xml"))
            lines.append("")

    lines.extend(FIX_GUIDANCE)
    if include_opx:
        lines.append("Generate new OPX with corrected operations based on the current file states.")
    else:
        lines.append("Provide the corrected code changes that fix these issues.")
    return "\n".join(lines)
