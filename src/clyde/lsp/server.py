"""Clyde Language Server: diagnostics, completion and hover via pygls."""

from __future__ import annotations

import re

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from clyde import __version__
from clyde.functions import FUNCTIONS
from clyde.parsing.query_parser import MetaKind, parse_program

# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

META_COMMANDS: dict[str, str] = {
    MetaKind.HELP.value: "Display help",
    MetaKind.EXIT.value: "Exit Clyde",
}

# Function name -> documentation, without the `select*` variant
FUNCTION_DOCS: dict[str, str] = {
    name: fn.DOC for name, fn in FUNCTIONS.items() if not name.endswith("*")
}

_WORD = r"[^\W\d_][^\W_]*"

# Partially typed words after `->`, `$` and `^`
_ARROW_RE = re.compile(r"->\s*(\w*)$")
_DOLLAR_RE = re.compile(r"\$(\w*)$")
_CARET_RE = re.compile(r"\^(\w*)$")

# Assignments `name = ...` at the start of a line or after `;`
_ASSIGN_RE = re.compile(rf"(?:^|;)\s*({_WORD})\s*=", re.MULTILINE)

# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(source: str, lexpos: int) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``."""
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    return types.Position(line=line, character=character)


def _find_variables(source: str) -> list[str]:
    """Return the names assigned in *source*, in order, without duplicates."""
    names: list[str] = []
    for m in _ASSIGN_RE.finditer(source):
        if m.group(1) not in names:
            names.append(m.group(1))
    return names


def _word_at_position(line_text: str, character: int) -> str:
    """Return the contiguous identifier-like word surrounding *character*."""
    if character < 0 or character >= len(line_text):
        return ""
    if not line_text[character].isalnum():
        return ""
    left = character
    while left > 0 and line_text[left - 1].isalnum():
        left -= 1
    right = character
    while right < len(line_text) and line_text[right].isalnum():
        right += 1
    return line_text[left:right]


def _diagnose(source: str) -> list[types.Diagnostic]:
    """Return a diagnostic for the first syntax error in *source*, if any."""
    try:
        parse_program(source)
    except SyntaxError as exc:
        position = getattr(exc, "position", None)
        if position is not None:
            start = lexpos_to_position(source, position)
        else:
            # Fallback: end of document
            lines = source.split("\n")
            start = types.Position(line=max(len(lines) - 1, 0), character=0)
        end = types.Position(line=start.line, character=start.character + 1)
        return [
            types.Diagnostic(
                range=types.Range(start=start, end=end),
                severity=types.DiagnosticSeverity.Error,
                source="clyde",
                message=getattr(exc, "message", str(exc)),
            )
        ]
    return []


def _complete(prefix: str, source: str) -> list[types.CompletionItem]:
    """Completion items for a line typed up to *prefix*."""
    items: list[types.CompletionItem] = []
    if _ARROW_RE.search(prefix):
        for name, doc in FUNCTION_DOCS.items():
            items.append(
                types.CompletionItem(label=name, kind=types.CompletionItemKind.Function, detail=doc)
            )
    elif _DOLLAR_RE.search(prefix):
        for name in _find_variables(source):
            items.append(
                types.CompletionItem(label=name, kind=types.CompletionItemKind.Variable)
            )
    elif _CARET_RE.search(prefix):
        for name, doc in META_COMMANDS.items():
            items.append(
                types.CompletionItem(label=name, kind=types.CompletionItemKind.Keyword, detail=doc)
            )
    return items


def _hover_text(line_text: str, character: int) -> str | None:
    word = _word_at_position(line_text, character)
    if not word:
        return None
    start = character
    while start > 0 and line_text[start - 1].isalnum():
        start -= 1
    if start > 0 and line_text[start - 1] == "^" and word in META_COMMANDS:
        return f"**^{word}**: {META_COMMANDS[word]}"
    if word in FUNCTION_DOCS:
        return f"**{word}**: {FUNCTION_DOCS[word]}"
    return None


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("clyde-language-server", __version__)


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


def _validate_document(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=_diagnose(doc.source))
    )


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=[">", "$", "^"]),
)
def completions(params: types.CompletionParams) -> types.CompletionList:
    doc = server.workspace.get_text_document(params.text_document.uri)
    line_text = doc.lines[params.position.line] if params.position.line < len(doc.lines) else ""
    prefix = line_text[: params.position.character]
    return types.CompletionList(is_incomplete=False, items=_complete(prefix, doc.source))


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(params: types.HoverParams) -> types.Hover | None:
    doc = server.workspace.get_text_document(params.text_document.uri)
    if params.position.line >= len(doc.lines):
        return None
    content = _hover_text(doc.lines[params.position.line], params.position.character)
    if content is None:
        return None
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=content,
        )
    )


def main() -> None:
    server.start_io()


if __name__ == "__main__":
    main()
