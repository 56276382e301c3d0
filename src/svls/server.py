from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

from lsprotocol.types import (
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    DidChangeTextDocumentParams,
    DidChangeWorkspaceFoldersParams,
    DidOpenTextDocumentParams,
    InitializedParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    PublishDiagnosticsParams,
    ShowMessageParams,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from svls import __version__
from svls.config import (
    DEFAULT_CONFIG_NAME,
    RULE_CONFIG_NAME,
    load_configuration,
    load_rule_settings,
    search_config,
)
from svls.exceptions import ConfigError, ConfigMissingError, ConfigReadError
from svls.linter import ParseFn, analyze
from svls.parser import parse_source
from svls.rules import Linter
from svls.schema import ServerConfiguration
from svls.state import ServerState

logger = logging.getLogger(__name__)

server = LanguageServer(
    "svls", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)
state = ServerState()

DEFAULT_SETTINGS_FALLBACK = "Use default settings."
ENABLE_ALL_FALLBACK = "Enable all lint rules."


def _uri_to_path(uri: str | None) -> Path:
    if not uri:
        return Path("")
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path("")


def config_warning(error: ConfigError, fallback: str) -> str:
    if isinstance(error, ConfigMissingError):
        return f"{error.path} is not found. {fallback}"
    verb = "read" if isinstance(error, ConfigReadError) else "parse"
    return f"Failed to {verb} {error.path}. {fallback}"


def initialize_state(
    server_state: ServerState, root_uri: str | None, *, cwd: Path | None = None
) -> list[str]:
    """Load settings into ``server_state`` and return warnings for the client."""
    warnings: list[str] = []
    root = _uri_to_path(root_uri)

    config_svls = search_config(DEFAULT_CONFIG_NAME, cwd)
    logger.debug("config_svls: %s", config_svls)
    try:
        configuration = load_configuration(config_svls)
    except ConfigError as exc:
        warnings.append(config_warning(exc, DEFAULT_SETTINGS_FALLBACK))
        configuration = ServerConfiguration()

    engine: Linter | None = None
    if configuration.option.linter:
        config_svlint = search_config(RULE_CONFIG_NAME, cwd)
        logger.debug("config_svlint: %s", config_svlint)
        try:
            engine = Linter.from_settings(load_rule_settings(config_svlint))
        except ConfigError as exc:
            warnings.append(config_warning(exc, ENABLE_ALL_FALLBACK))
            engine = Linter.enable_all()
        logger.debug("enabled rules: %s", engine.enabled)

    for warning in warnings:
        logger.warning(warning)
    server_state.initialize(root, configuration, engine)
    return warnings


def _publish(
    ls: LanguageServer,
    server_state: ServerState,
    uri: str,
    version: int | None,
    text: str,
    *,
    parse: ParseFn = parse_source,
) -> None:
    diagnostics = analyze(text, server_state, parse=parse)
    logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics, version=version)
    )


@server.feature(INITIALIZE)
def initialize(ls: LanguageServer, params: InitializeParams) -> None:
    logger.debug("root_uri: %s", params.root_uri)
    for message in initialize_state(state, params.root_uri):
        ls.window_show_message(
            ShowMessageParams(type=MessageType.Warning, message=message)
        )


@server.feature(INITIALIZED)
def initialized(ls: LanguageServer, params: InitializedParams) -> None:
    ls.window_log_message(
        LogMessageParams(type=MessageType.Info, message="server initialized")
    )


@server.feature(SHUTDOWN)
def shutdown(ls: LanguageServer, params: None = None) -> None:
    state.shutdown()


@server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
def did_change_workspace_folders(
    ls: LanguageServer, params: DidChangeWorkspaceFoldersParams
) -> None:
    """Multi-root workspaces are not supported; the notification is ignored."""


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    logger.debug("did_open")
    document = params.text_document
    _publish(ls, state, document.uri, document.version, document.text)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    logger.debug("did_change")
    document = params.text_document
    # Full sync: the last change carries the whole document.
    text = params.content_changes[-1].text
    _publish(ls, state, document.uri, document.version, text)


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Serve over stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
