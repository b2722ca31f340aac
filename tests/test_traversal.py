"""Tests for the interactive traversal session."""

import json
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

from vault_canvas.config import Settings
from vault_canvas.models.canvas import NodeKind
from vault_canvas.services.canvas_store import CanvasStore
from vault_canvas.services.layout import LayoutEngine
from vault_canvas.services.links import VaultLinkResolver
from vault_canvas.services.traversal import SessionState, TraversalSession, TraversalStateError
from vault_canvas.services.vault import VaultService

from conftest import (
    FakeContentStore,
    FakePrompt,
    FakeResolver,
    MemorySink,
    RecordingNotifier,
    RecordingWorkspace,
    make_doc,
    write_note,
)

Graph = Dict[str, Tuple[List[str], List[str]]]


def _docs(*names: str):
    return {name: make_doc(f"{name}.md", day=index + 1) for index, name in enumerate(names)}


def _graph(edges: Dict[str, List[str]]) -> Graph:
    """Build outbound/inbound lists from an outbound adjacency map keyed by bare names."""
    graph: Graph = {}
    for source, targets in edges.items():
        graph.setdefault(f"{source}.md", ([], []))[0].extend(f"{t}.md" for t in targets)
        for target in targets:
            graph.setdefault(f"{target}.md", ([], []))[1].append(f"{source}.md")
    return graph


def _session(
    docs,
    graph: Graph,
    settings: Settings,
    *,
    prompt: FakePrompt | None = None,
    sink: MemorySink | None = None,
    notifier: RecordingNotifier | None = None,
    workspace: RecordingWorkspace | None = None,
) -> TraversalSession:
    resolver = FakeResolver(list(docs.values()), graph)
    return TraversalSession(
        resolver=resolver,
        layout=LayoutEngine(resolver, FakeContentStore({}), settings),
        sink=sink or MemorySink(),
        prompt=prompt or FakePrompt(),
        notifier=notifier or RecordingNotifier(),
        workspace=workspace or RecordingWorkspace(),
        settings=settings,
    )


def _paths(documents):
    return [document.path for document in documents]


@pytest.mark.asyncio
async def test_expansion_is_breadth_first(settings: Settings, workspace: RecordingWorkspace) -> None:
    docs = _docs("A", "B", "C", "D")
    session = _session(docs, _graph({"A": ["B", "C"], "B": ["D"]}), settings, workspace=workspace)

    candidate = await session.start(docs["A"])
    assert candidate == docs["B"]
    assert _paths(session.pending) == ["C.md"]

    candidate = await session.keep(docs["B"])
    assert candidate == docs["C"]
    assert _paths(session.pending) == ["D.md"]

    candidate = await session.keep(docs["C"])
    assert candidate == docs["D"]
    assert workspace.documents == ["B.md", "C.md", "D.md"]
    assert _paths(session.accepted) == ["A.md", "B.md", "C.md"]


@pytest.mark.asyncio
async def test_cycles_terminate_without_revisits(settings: Settings, workspace: RecordingWorkspace) -> None:
    docs = _docs("A", "B", "C")
    session = _session(
        docs, _graph({"A": ["B", "C"], "B": ["C", "A"], "C": ["A", "B"]}), settings, workspace=workspace
    )

    candidate = await session.start(docs["A"])
    steps = 0
    while candidate is not None:
        candidate = await session.add_note(candidate)
        steps += 1

    assert steps == 2
    assert workspace.documents == ["B.md", "C.md"]
    assert session.state is SessionState.IDLE


@pytest.mark.asyncio
async def test_discard_does_not_expand(settings: Settings, workspace: RecordingWorkspace) -> None:
    docs = _docs("A", "B", "C", "D")
    session = _session(docs, _graph({"A": ["B", "C"], "B": ["D"]}), settings, workspace=workspace)

    await session.start(docs["A"])
    candidate = await session.discard(docs["B"])

    assert candidate == docs["C"]
    assert session.pending == []
    assert "D.md" not in workspace.documents


@pytest.mark.asyncio
async def test_remaining_count_is_announced(settings: Settings, notifier: RecordingNotifier) -> None:
    docs = _docs("A", "B", "C")
    session = _session(docs, _graph({"A": ["B", "C"]}), settings, notifier=notifier)

    await session.start(docs["A"])
    await session.discard(docs["B"])

    assert notifier.messages == ["2 notes remaining to review.", "1 notes remaining to review."]


@pytest.mark.asyncio
async def test_decisions_must_target_current_candidate(settings: Settings) -> None:
    docs = _docs("A", "B", "C")
    session = _session(docs, _graph({"A": ["B", "C"]}), settings)

    with pytest.raises(TraversalStateError):
        await session.keep(docs["A"])
    with pytest.raises(TraversalStateError):
        await session.ignore_note(docs["A"])

    await session.start(docs["A"])

    with pytest.raises(TraversalStateError):
        await session.keep(docs["C"])
    with pytest.raises(TraversalStateError):
        await session.start(docs["B"])


@pytest.mark.asyncio
async def test_add_note_starts_then_keeps(settings: Settings) -> None:
    docs = _docs("A", "B")
    sink = MemorySink()
    session = _session(docs, _graph({"A": ["B"]}), settings, prompt=FakePrompt(["Pair"]), sink=sink)

    candidate = await session.add_note(docs["A"])
    assert session.state is SessionState.AWAITING_DECISION
    assert candidate == docs["B"]

    assert await session.add_note(docs["B"]) is None
    assert list(sink.files) == ["Pair.canvas"]


@pytest.mark.asyncio
async def test_finalize_writes_grid_canvas_and_resets(
    settings: Settings, workspace: RecordingWorkspace
) -> None:
    docs = _docs("Home", "A")
    sink = MemorySink()
    prompt = FakePrompt(["MyMap"])
    session = _session(docs, _graph({"Home": ["A"]}), settings, prompt=prompt, sink=sink, workspace=workspace)

    await session.start(docs["Home"])
    result = await session.keep(docs["A"])

    assert result is None
    assert prompt.calls == 1
    canvas = sink.files["MyMap.canvas"]
    assert [node.type for node in canvas.nodes] == [NodeKind.FILE, NodeKind.FILE, NodeKind.TEXT]
    assert canvas.edges == []
    assert workspace.canvases == ["MyMap.canvas"]
    assert session.last_canvas_path == "MyMap.canvas"
    assert session.state is SessionState.IDLE
    assert session.accepted == [] and session.pending == []


@pytest.mark.asyncio
async def test_finalize_uses_configured_folder(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, vault_path=tmp_path, canvas_folder="Maps")
    docs = _docs("Solo")
    sink = MemorySink()
    session = _session(docs, {}, settings, prompt=FakePrompt(["Map"]), sink=sink)

    await session.start(docs["Solo"])

    assert sink.folders == ["Maps"]
    assert list(sink.files) == ["Maps/Map.canvas"]


@pytest.mark.asyncio
async def test_cancelled_name_writes_nothing_but_resets(settings: Settings) -> None:
    docs = _docs("Solo")
    sink = MemorySink()
    session = _session(docs, {}, settings, prompt=FakePrompt([None]), sink=sink)

    assert await session.start(docs["Solo"]) is None

    assert sink.writes == 0
    assert session.state is SessionState.IDLE
    assert session.accepted == []
    assert session.last_canvas_path is None


@pytest.mark.asyncio
async def test_write_failure_is_reported_and_state_reset(
    settings: Settings, notifier: RecordingNotifier, workspace: RecordingWorkspace
) -> None:
    docs = _docs("Solo")
    sink = MemorySink(existing=["Taken.canvas"])
    session = _session(
        docs, {}, settings, prompt=FakePrompt(["Taken"]), sink=sink, notifier=notifier, workspace=workspace
    )

    await session.start(docs["Solo"])

    assert notifier.messages == ["Could not create canvas: Canvas already exists: Taken.canvas"]
    assert workspace.canvases == []
    assert session.state is SessionState.IDLE
    assert session.last_canvas_path is None


@pytest.mark.asyncio
async def test_new_session_after_finish(settings: Settings) -> None:
    docs = _docs("A", "B")
    sink = MemorySink()
    session = _session(docs, {}, settings, prompt=FakePrompt(["First", "Second"]), sink=sink)

    await session.start(docs["A"])
    await session.start(docs["B"])

    assert [node.file for node in sink.files["Second.canvas"].nodes[:-1]] == ["B.md"]


@pytest.mark.asyncio
async def test_home_to_a_scenario_on_disk(
    settings: Settings, vault_root: Path, workspace: RecordingWorkspace
) -> None:
    write_note(vault_root, "Home.md", "Start at [[A]]", created="2024-01-01T00:00:00")
    write_note(vault_root, "A.md", "Leaf note", created="2024-01-02T00:00:00")
    vault = VaultService(settings)
    resolver = VaultLinkResolver(vault)
    session = TraversalSession(
        resolver=resolver,
        layout=LayoutEngine(resolver, vault, settings),
        sink=CanvasStore(settings),
        prompt=FakePrompt(["MyMap"]),
        notifier=RecordingNotifier(),
        workspace=workspace,
        settings=settings,
    )

    candidate = await session.add_note(vault.get_document("Home.md"))
    assert candidate.path == "A.md"
    assert await session.add_note(candidate) is None

    payload = json.loads((vault_root / "MyMap.canvas").read_text(encoding="utf-8"))
    assert [node["type"] for node in payload["nodes"]] == ["file", "file", "text"]
    assert [node["file"] for node in payload["nodes"][:2]] == ["Home.md", "A.md"]
    assert payload["nodes"][2]["text"] == "--- Home.md ---\nStart at [[A]]\n\n--- A.md ---\nLeaf note\n\n"
    assert payload["edges"] == []
