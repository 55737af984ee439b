"""KRL Language Server Protocol implementation."""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Optional

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .call_hierarchy import incoming_calls, outgoing_calls, prepare_call_hierarchy
from .code_actions import code_actions, code_lenses
from .completion import complete, signature_help
from .debounce import Debouncer
from .diagnostics import compute_diagnostics, validate_dat_file, validate_variable_usage
from .folding import block_highlights, folding_ranges
from .formatter import format_document
from .navigation import definition, hover
from .outline import document_symbols, workspace_symbols
from .references import find_references, prepare_rename, rename, workspace_texts
from .resolver import find_source_files, path_to_uri, read_source, uri_to_path
from .session import Session
from .symbols import Diagnostic, Range
from .text_utils import split_lines

log = logging.getLogger(__name__)

server = LanguageServer('krl-lsp', 'v0.1.0')
session = Session()

KRL_LANGUAGE_ID = 'krl'
SETTINGS_SECTION = 'krl'


def _source(uri: str) -> str:
    return server.workspace.get_text_document(uri).source


def _open_documents() -> dict[str, str]:
    """Path -> text of every open document."""
    return {
        uri_to_path(uri): doc.source
        for uri, doc in server.workspace.text_documents.items()
    }


def _range_to_lsp(r: Range) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=r.start_line, character=r.start_col),
        end=lsp.Position(line=r.end_line, character=r.end_col),
    )


def _diagnostic_to_lsp(diag: Diagnostic) -> lsp.Diagnostic:
    tags = [lsp.DiagnosticTag.Unnecessary] if diag.unnecessary else None
    return lsp.Diagnostic(
        range=_range_to_lsp(diag.range),
        message=diag.message,
        severity=lsp.DiagnosticSeverity(diag.severity.value),
        code=diag.code,
        source='krl',
        data=diag.data,
        tags=tags,
    )


def _publish(uri: str, diagnostics: list[Diagnostic]) -> None:
    # An empty list clears stale findings
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=[_diagnostic_to_lsp(d) for d in diagnostics],
    ))


def validate_document(uri: str) -> None:
    """Index the document's current text and publish its diagnostics."""
    doc = server.workspace.get_text_document(uri)
    path = uri_to_path(uri)
    session.indexer.index_source(path, doc.source)
    diagnostics = compute_diagnostics(
        doc.source, path, session.index, session.settings,
        session.workspace_ready,
    )
    _publish(uri, diagnostics)


_debouncer = Debouncer(validate_document, session.settings.validation_delay)


def _index_root() -> None:
    session.index_workspace()
    for uri in list(server.workspace.text_documents):
        validate_document(uri)


@server.feature(lsp.INITIALIZED)
def on_initialized(params: lsp.InitializedParams) -> None:
    """Index the workspace when the server is initialized."""
    folders = list(server.workspace.folders.values())
    if folders:
        path = uri_to_path(folders[0].uri)
        log.info('Indexing workspace folder: %s', path)
        session.set_root(path)
        _index_root()
    elif server.workspace.root_path:
        session.set_root(server.workspace.root_path)
        _index_root()


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    path = uri_to_path(uri)
    if session.root is None:
        session.ensure_root(path)
        session.index_workspace()
    validate_document(uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Re-index from the latest content right away, validate once idle
    session.indexer.index_source(uri_to_path(uri), _source(uri))
    _debouncer.delay = session.settings.validation_delay
    _debouncer.schedule(uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
    _debouncer.cancel(params.text_document.uri)
    validate_document(params.text_document.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    _debouncer.cancel(uri)
    # The file on disk replaces the unsaved buffer in the index
    session.indexer.index_file(uri_to_path(uri))
    _publish(uri, [])


@server.feature(lsp.WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(params: lsp.DidChangeWatchedFilesParams) -> None:
    for change in params.changes:
        path = uri_to_path(change.uri)
        if change.type == lsp.FileChangeType.Deleted:
            session.indexer.remove_file(path)
        else:
            session.indexer.index_file(path)


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(params: lsp.DidChangeConfigurationParams) -> None:
    settings = params.settings
    if isinstance(settings, dict):
        session.settings.update(settings.get(SETTINGS_SECTION, settings))


@server.feature('krl/updateSettings')
def update_settings(params: Any) -> None:
    session.settings.update(_as_dict(params))


@server.feature('krl/setLocale')
def set_locale(params: Any) -> None:
    values = _as_dict(params)
    locale = values.get('locale') if values else params
    if isinstance(locale, str):
        session.settings.update({'locale': locale})
        for uri in list(server.workspace.text_documents):
            validate_document(uri)


@server.feature('krl/validateWorkspace')
def validate_workspace(params: Any) -> None:
    """Validate every source file, open or not, and publish the results."""
    if not session.root:
        return
    open_docs = _open_documents()
    count = 0
    for filepath in find_source_files(session.root):
        filepath = os.path.abspath(filepath)
        text = open_docs.get(filepath)
        if text is None:
            text = read_source(filepath)
        if text is None:
            continue
        diagnostics = []
        if filepath.lower().endswith('.dat'):
            diagnostics += validate_dat_file(
                text, filepath, session.settings.validate_non_ascii,
            )
        diagnostics += validate_variable_usage(
            text, filepath, session.index.declared_names(),
            session.index.function_names(),
        )
        _publish(path_to_uri(filepath), diagnostics)
        count += 1
    log.info('Validated %d files', count)


def _as_dict(params: Any) -> dict[str, Any]:
    """Custom notifications arrive as pygls namedtuple-like objects."""
    if params is None:
        return {}
    if isinstance(params, dict):
        return params
    if hasattr(params, '_asdict'):
        return params._asdict()
    if hasattr(params, '__dict__'):
        return vars(params)
    return {}


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=['.', '$']),
)
def completions(params: lsp.CompletionParams) -> lsp.CompletionList:
    text = _source(params.text_document.uri)
    lines = split_lines(text)
    line = params.position.line
    items = []
    if line < len(lines):
        items = complete(
            text, lines[line], params.position.character, session.index,
        )
    return lsp.CompletionList(is_incomplete=False, items=items)


@server.feature(
    lsp.TEXT_DOCUMENT_SIGNATURE_HELP,
    lsp.SignatureHelpOptions(trigger_characters=['(', ',']),
)
def signature(params: lsp.SignatureHelpParams) -> Optional[lsp.SignatureHelp]:
    lines = split_lines(_source(params.text_document.uri))
    if params.position.line >= len(lines):
        return None
    return signature_help(
        lines[params.position.line], params.position.character, session.index,
    )


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def on_hover(params: lsp.HoverParams) -> Optional[lsp.Hover]:
    value = hover(
        _source(params.text_document.uri),
        params.position.line,
        params.position.character,
        session.index,
        session.root,
    )
    if value is None:
        return None
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=value),
    )


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def goto_definition(params: lsp.DefinitionParams) -> Optional[lsp.Location]:
    uri = params.text_document.uri
    location = definition(
        _source(uri),
        uri_to_path(uri),
        params.position.line,
        params.position.character,
        session.index,
        session.root,
        _open_documents(),
    )
    if location is None:
        return None
    return lsp.Location(
        uri=path_to_uri(location.file), range=_range_to_lsp(location.range),
    )


def _word_at(uri: str, position: lsp.Position):
    lines = split_lines(_source(uri))
    if position.line >= len(lines):
        return None
    return prepare_rename(lines[position.line], position.character)


@server.feature(lsp.TEXT_DOCUMENT_REFERENCES)
def references(params: lsp.ReferenceParams) -> list[lsp.Location]:
    word = _word_at(params.text_document.uri, params.position)
    if word is None:
        return []
    return [
        lsp.Location(uri=path_to_uri(loc.file), range=_range_to_lsp(loc.range))
        for loc in find_references(
            session.root, word.word, params.context.include_declaration,
            _open_documents(),
        )
    ]


@server.feature(lsp.TEXT_DOCUMENT_PREPARE_RENAME)
def on_prepare_rename(params: lsp.PrepareRenameParams) -> Optional[lsp.Range]:
    word = _word_at(params.text_document.uri, params.position)
    if word is None:
        return None
    line = params.position.line
    return _range_to_lsp(Range(line, word.start, line, word.end))


@server.feature(lsp.TEXT_DOCUMENT_RENAME)
def on_rename(params: lsp.RenameParams) -> Optional[lsp.WorkspaceEdit]:
    word = _word_at(params.text_document.uri, params.position)
    if word is None:
        return None
    changes = rename(
        session.root, word.word, params.new_name, _open_documents(),
    )
    if changes is None:
        return None
    return lsp.WorkspaceEdit(changes={
        path_to_uri(path): [
            lsp.TextEdit(range=_range_to_lsp(e.range), new_text=e.new_text)
            for e in edits
        ]
        for path, edits in changes.items()
    })


@server.feature(lsp.TEXT_DOCUMENT_PREPARE_CALL_HIERARCHY)
def on_prepare_call_hierarchy(
    params: lsp.CallHierarchyPrepareParams,
) -> Optional[list[lsp.CallHierarchyItem]]:
    uri = params.text_document.uri
    return prepare_call_hierarchy(
        _source(uri), uri_to_path(uri), params.position.line,
        params.position.character, session.index,
    )


@server.feature(lsp.CALL_HIERARCHY_INCOMING_CALLS)
def on_incoming_calls(
    params: lsp.CallHierarchyIncomingCallsParams,
) -> list[lsp.CallHierarchyIncomingCall]:
    return incoming_calls(
        params.item, workspace_texts(session.root, _open_documents()),
    )


@server.feature(lsp.CALL_HIERARCHY_OUTGOING_CALLS)
def on_outgoing_calls(
    params: lsp.CallHierarchyOutgoingCallsParams,
) -> list[lsp.CallHierarchyOutgoingCall]:
    path = uri_to_path(params.item.uri)
    text = _open_documents().get(path) or read_source(path)
    if text is None:
        return []
    return outgoing_calls(params.item, text, session.index)


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def on_document_symbols(
    params: lsp.DocumentSymbolParams,
) -> list[lsp.DocumentSymbol]:
    return document_symbols(_source(params.text_document.uri))


@server.feature(lsp.WORKSPACE_SYMBOL)
def on_workspace_symbols(
    params: lsp.WorkspaceSymbolParams,
) -> list[lsp.WorkspaceSymbol]:
    return workspace_symbols(params.query, session.index)


@server.feature(
    lsp.TEXT_DOCUMENT_CODE_ACTION,
    lsp.CodeActionOptions(code_action_kinds=[
        lsp.CodeActionKind.QuickFix, lsp.CodeActionKind.RefactorExtract,
    ]),
)
def on_code_action(params: lsp.CodeActionParams) -> list[lsp.CodeAction]:
    uri = params.text_document.uri
    return code_actions(
        _source(uri), uri, params.context.diagnostics, params.range,
    )


@server.feature(lsp.TEXT_DOCUMENT_CODE_LENS)
def on_code_lens(params: lsp.CodeLensParams) -> list[lsp.CodeLens]:
    return code_lenses(_source(params.text_document.uri))


@server.feature(lsp.TEXT_DOCUMENT_FOLDING_RANGE)
def on_folding_range(params: lsp.FoldingRangeParams) -> list[lsp.FoldingRange]:
    lines = split_lines(_source(params.text_document.uri))
    return [
        lsp.FoldingRange(
            start_line=region.start_line,
            end_line=region.end_line,
            kind=lsp.FoldingRangeKind.Region,
        )
        for region in folding_ranges(lines)
    ]


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_HIGHLIGHT)
def on_document_highlight(
    params: lsp.DocumentHighlightParams,
) -> list[lsp.DocumentHighlight]:
    lines = split_lines(_source(params.text_document.uri))
    return [
        lsp.DocumentHighlight(
            range=_range_to_lsp(r), kind=lsp.DocumentHighlightKind.Read,
        )
        for r in block_highlights(
            lines, params.position.line, params.position.character,
        )
    ]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def on_formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit]:
    settings = session.settings
    edits = format_document(
        _source(params.text_document.uri),
        tab_size=params.options.tab_size,
        insert_spaces=params.options.insert_spaces,
        separate_before_blocks=settings.separate_before_blocks,
        separate_after_blocks=settings.separate_after_blocks,
    )
    return [
        lsp.TextEdit(range=_range_to_lsp(e.range), new_text=e.new_text)
        for e in edits
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description='KRL LSP Server')
    parser.add_argument(
        '--stdio', action='store_true', default=True,
        help='Use stdio transport (default)',
    )
    parser.add_argument(
        '--log-file', type=str, default=None,
        help='Log to file',
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Enable verbose logging',
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file, level=level,
            format='%(asctime)s %(name)s %(levelname)s: %(message)s',
        )
    else:
        logging.basicConfig(
            level=level,
            format='%(asctime)s %(name)s %(levelname)s: %(message)s',
        )

    server.start_io()


if __name__ == '__main__':
    main()
