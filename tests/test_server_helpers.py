from __future__ import annotations

from pathlib import Path

import pytest

from svls.exceptions import ConfigMissingError, ConfigParseError, ConfigReadError
from svls.rules import RULES
from svls.state import ServerPhase, ServerState
from tests.event_helpers import FakeParsed, FakeParser, node, token


def _load():
    pytest.importorskip("pygls")
    pytest.importorskip("lsprotocol")
    from svls import server

    return server


class _RecordingClient:
    def __init__(self) -> None:
        self.published = []
        self.shown = []
        self.logged = []

    def text_document_publish_diagnostics(self, params) -> None:
        self.published.append(params)

    def window_show_message(self, params) -> None:
        self.shown.append(params)

    def window_log_message(self, params) -> None:
        self.logged.append(params)


def test_uri_to_path() -> None:
    server = _load()
    path = Path("/tmp/proj dir")
    assert server._uri_to_path(path.as_uri()) == path
    assert server._uri_to_path(None) == Path("")
    assert server._uri_to_path("untitled:Untitled-1") == Path("")


def test_config_warning_messages() -> None:
    server = _load()
    assert (
        server.config_warning(ConfigMissingError(Path(".svlint.toml")), "Enable all lint rules.")
        == ".svlint.toml is not found. Enable all lint rules."
    )
    assert (
        server.config_warning(ConfigReadError(Path("/p/.svls.toml")), "Use default settings.")
        == "Failed to read /p/.svls.toml. Use default settings."
    )
    assert (
        server.config_warning(ConfigParseError(Path("/p/.svlint.toml")), "Enable all lint rules.")
        == "Failed to parse /p/.svlint.toml. Enable all lint rules."
    )


def test_initialize_state_without_config_files(tmp_path: Path) -> None:
    server = _load()
    state = ServerState()
    warnings = server.initialize_state(state, tmp_path.as_uri(), cwd=tmp_path)

    assert warnings == [".svlint.toml is not found. Enable all lint rules."]
    assert state.phase is ServerPhase.INITIALIZED
    snapshot = state.snapshot()
    assert snapshot.root == tmp_path
    assert snapshot.configuration.option.linter is True
    with state.borrow_engine() as engine:
        assert engine.enabled == list(RULES)


def test_initialize_state_with_both_files(tmp_path: Path) -> None:
    server = _load()
    (tmp_path / ".svls.toml").write_text(
        '[verilog]\ninclude_paths = ["inc"]\ndefines = ["WIDTH=8"]\n',
        encoding="utf-8",
    )
    (tmp_path / ".svlint.toml").write_text(
        "[rules]\nlegacy_always = true\n", encoding="utf-8"
    )
    nested = tmp_path / "rtl" / "core"
    nested.mkdir(parents=True)

    state = ServerState()
    warnings = server.initialize_state(state, None, cwd=nested)

    assert warnings == []
    snapshot = state.snapshot()
    assert snapshot.root == Path("")
    assert snapshot.configuration.verilog.include_paths == ["inc"]
    with state.borrow_engine() as engine:
        assert engine.enabled == ["legacy_always"]


def test_initialize_state_linter_disabled_skips_rule_settings(tmp_path: Path) -> None:
    server = _load()
    (tmp_path / ".svls.toml").write_text("[option]\nlinter = false\n", encoding="utf-8")
    state = ServerState()
    assert server.initialize_state(state, None, cwd=tmp_path) == []
    with state.borrow_engine() as engine:
        assert engine is None


def test_initialize_state_bad_settings_fall_back(tmp_path: Path) -> None:
    server = _load()
    (tmp_path / ".svls.toml").write_text("[verilog\n", encoding="utf-8")
    (tmp_path / ".svlint.toml").write_text("[rules]\nlegacy_always = []\n", encoding="utf-8")
    state = ServerState()
    warnings = server.initialize_state(state, None, cwd=tmp_path)

    assert warnings == [
        f"Failed to parse {tmp_path / '.svls.toml'}. Use default settings.",
        f"Failed to parse {tmp_path / '.svlint.toml'}. Enable all lint rules.",
    ]
    assert state.snapshot().configuration.verilog.defines == []
    with state.borrow_engine() as engine:
        assert engine.enabled == list(RULES)


def test_publish_sends_diagnostics_with_version(make_state) -> None:
    server = _load()
    from svls.rules import Linter
    from svls.model import EventPhase

    client = _RecordingClient()
    parser = FakeParser(
        FakeParsed(
            [
                node(EventPhase.ENTER, "AlwaysBlock"),
                token("AlwaysKeyword", 2, "always"),
            ]
        )
    )
    state = make_state(engine=Linter.enable_all())
    server._publish(client, state, "file:///proj/top.sv", 7, "  always", parse=parser)

    assert len(client.published) == 1
    params = client.published[0]
    assert params.uri == "file:///proj/top.sv"
    assert params.version == 7
    assert [d.code for d in params.diagnostics] == ["legacy_always"]


def test_publish_before_initialize_sends_empty_list() -> None:
    server = _load()
    client = _RecordingClient()
    parser = FakeParser(FakeParsed([]))
    server._publish(client, ServerState(), "file:///a.sv", 1, "module", parse=parser)
    assert client.published[0].diagnostics == []


def test_start_uses_injected_callable() -> None:
    server = _load()
    called = {"value": False}

    def _start() -> None:
        called["value"] = True

    server.start(_start)
    assert called["value"] is True


def test_initialized_logs_to_client() -> None:
    server = _load()
    client = _RecordingClient()
    server.initialized(client, None)
    assert [p.message for p in client.logged] == ["server initialized"]


def test_initialize_shows_missing_rule_file_warning_once(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    server = _load()
    from lsprotocol.types import ClientCapabilities, InitializeParams, MessageType

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(server, "state", ServerState())
    client = _RecordingClient()
    params = InitializeParams(
        process_id=None, capabilities=ClientCapabilities(), root_uri=tmp_path.as_uri()
    )
    server.initialize(client, params)

    assert [(p.type, p.message) for p in client.shown] == [
        (MessageType.Warning, ".svlint.toml is not found. Enable all lint rules.")
    ]
    assert server.state.snapshot().root == tmp_path


_CLEAN_TEXT = "module m;\nendmodule\n"
_ALWAYS_TEXT = (
    "module m(input logic clk, output logic q);\n"
    "  always @(posedge clk) q <= 1'b0;\n"
    "endmodule\n"
)


def test_did_open_publishes_for_document_version(
    make_state, monkeypatch: pytest.MonkeyPatch
) -> None:
    server = _load()
    from lsprotocol.types import DidOpenTextDocumentParams, TextDocumentItem
    from svls.rules import Linter

    monkeypatch.setattr(server, "state", make_state(engine=Linter(["legacy_always"])))
    client = _RecordingClient()
    params = DidOpenTextDocumentParams(
        text_document=TextDocumentItem(
            uri="file:///proj/top.sv",
            language_id="systemverilog",
            version=1,
            text=_ALWAYS_TEXT,
        )
    )
    server.did_open(client, params)

    assert len(client.published) == 1
    published = client.published[0]
    assert published.uri == "file:///proj/top.sv"
    assert published.version == 1
    assert [d.code for d in published.diagnostics] == ["legacy_always"]


def test_did_change_lints_last_content_change(
    make_state, monkeypatch: pytest.MonkeyPatch
) -> None:
    server = _load()
    from lsprotocol.types import (
        DidChangeTextDocumentParams,
        Position,
        TextDocumentContentChangeWholeDocument,
        VersionedTextDocumentIdentifier,
    )
    from svls.rules import Linter

    monkeypatch.setattr(server, "state", make_state(engine=Linter(["legacy_always"])))
    client = _RecordingClient()
    params = DidChangeTextDocumentParams(
        text_document=VersionedTextDocumentIdentifier(
            uri="file:///proj/top.sv", version=4
        ),
        content_changes=[
            TextDocumentContentChangeWholeDocument(text=_CLEAN_TEXT),
            TextDocumentContentChangeWholeDocument(text=_ALWAYS_TEXT),
        ],
    )
    server.did_change(client, params)

    assert len(client.published) == 1
    published = client.published[0]
    assert published.version == 4
    assert [d.code for d in published.diagnostics] == ["legacy_always"]
    assert published.diagnostics[0].range.start == Position(line=1, character=2)
