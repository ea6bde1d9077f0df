from __future__ import annotations

import pytest

from vibe_ade.agent.slash import AgentInput, ShellInput, parse_input_line
from vibe_ade.config.schema import AgentRoute
from vibe_ade.session.layout import LayoutManager, LayoutSnapshot


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("/local explain this error", AgentInput(AgentRoute.LOCAL, "explain this error")),
        ("  /cloud   write a test  ", AgentInput(AgentRoute.CLOUD, "write a test")),
        ("/local", AgentInput(AgentRoute.LOCAL, "")),
        ("git status", ShellInput("git status")),
        ("/localize", ShellInput("/localize")),
        ("echo /cloud", ShellInput("echo /cloud")),
        ("   ", ShellInput("")),
    ],
)
def test_parse_input_line(line: str, expected) -> None:
    assert parse_input_line(line) == expected


def test_layout_templates_produce_pane_ids() -> None:
    layout = LayoutManager()

    assert layout.pane_ids == ["pane-1", "pane-2"]
    assert layout.apply_template(6) == [f"pane-{i}" for i in range(1, 7)]
    assert layout.template == 6


def test_layout_rejects_unknown_template() -> None:
    with pytest.raises(ValueError, match="Unsupported layout template"):
        LayoutManager().apply_template(3)


def test_routes_default_local_and_drop_with_pane() -> None:
    layout = LayoutManager(4)
    layout.set_route("pane-4", "cloud")

    assert layout.get_route("pane-1") is AgentRoute.LOCAL
    assert layout.get_route("pane-4") is AgentRoute.CLOUD

    layout.apply_template(2)
    layout.apply_template(4)

    assert layout.get_route("pane-4") is AgentRoute.LOCAL


def test_snapshot_round_trip_through_dict() -> None:
    layout = LayoutManager(4)
    layout.set_route("pane-2", AgentRoute.CLOUD)

    data = layout.snapshot().to_dict()

    assert data == {
        "template": 4,
        "modelByPane": {"pane-1": "Local", "pane-2": "Cloud", "pane-3": "Local", "pane-4": "Local"},
    }
    restored = LayoutManager()
    assert restored.load_snapshot(data) == ["pane-1", "pane-2", "pane-3", "pane-4"]
    assert restored.get_route("pane-2") is AgentRoute.CLOUD


def test_snapshot_ignores_unknown_models() -> None:
    snapshot = LayoutSnapshot.from_dict({"template": 2, "modelByPane": {"pane-1": "Mystery"}})
    layout = LayoutManager()

    layout.load_snapshot(snapshot)

    assert layout.get_route("pane-1") is AgentRoute.LOCAL
