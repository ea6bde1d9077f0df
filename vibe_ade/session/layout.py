"""Pane layout state: template size, pane ids and each pane's default route.

Snapshot shape (JSON-friendly)::

    {"template": 4, "modelByPane": {"pane-1": "Local", "pane-2": "Cloud", ...}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from vibe_ade.config.schema import AgentRoute

LAYOUT_TEMPLATES = (2, 4, 6)
DEFAULT_TEMPLATE = 2

_MODEL_LABELS = {AgentRoute.LOCAL: "Local", AgentRoute.CLOUD: "Cloud"}
_LABEL_ROUTES = {label: route for route, label in _MODEL_LABELS.items()}


def pane_ids_for(template: int) -> list[str]:
    return [f"pane-{i + 1}" for i in range(template)]


@dataclass
class LayoutSnapshot:
    template: int = DEFAULT_TEMPLATE
    model_by_pane: dict[str, AgentRoute] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "template": self.template,
            "modelByPane": {pane: _MODEL_LABELS[route] for pane, route in self.model_by_pane.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayoutSnapshot":
        template = data.get("template", DEFAULT_TEMPLATE)
        raw = data.get("modelByPane") or {}
        models: dict[str, AgentRoute] = {}
        for pane_id, label in raw.items():
            route = _LABEL_ROUTES.get(label)
            if route is not None:
                models[str(pane_id)] = route
        return cls(template=template, model_by_pane=models)


class LayoutManager:
    """Tracks which panes exist and which route each pane defaults to."""

    def __init__(self, template: int = DEFAULT_TEMPLATE) -> None:
        self._template = DEFAULT_TEMPLATE
        self._pane_ids: list[str] = []
        self._route_by_pane: dict[str, AgentRoute] = {}
        self.apply_template(template)

    @property
    def template(self) -> int:
        return self._template

    @property
    def pane_ids(self) -> list[str]:
        return list(self._pane_ids)

    def apply_template(self, template: int) -> list[str]:
        """Switch to ``template`` panes; new panes default to local, dropped panes are forgotten."""
        if template not in LAYOUT_TEMPLATES:
            raise ValueError(f"Unsupported layout template: {template} (expected one of {LAYOUT_TEMPLATES})")
        self._template = template
        self._pane_ids = pane_ids_for(template)

        for pane_id in self._pane_ids:
            self._route_by_pane.setdefault(pane_id, AgentRoute.LOCAL)
        for pane_id in list(self._route_by_pane):
            if pane_id not in self._pane_ids:
                del self._route_by_pane[pane_id]

        return self.pane_ids

    def set_route(self, pane_id: str, route: AgentRoute | str) -> None:
        self._route_by_pane[pane_id] = AgentRoute(route)

    def get_route(self, pane_id: str) -> AgentRoute:
        return self._route_by_pane.get(pane_id, AgentRoute.LOCAL)

    def snapshot(self) -> LayoutSnapshot:
        return LayoutSnapshot(
            template=self._template,
            model_by_pane={pane_id: self.get_route(pane_id) for pane_id in self._pane_ids},
        )

    def load_snapshot(self, snapshot: LayoutSnapshot | dict[str, Any]) -> list[str]:
        if isinstance(snapshot, dict):
            snapshot = LayoutSnapshot.from_dict(snapshot)
        pane_ids = self.apply_template(snapshot.template)
        for pane_id in pane_ids:
            route = snapshot.model_by_pane.get(pane_id)
            if route is not None:
                self._route_by_pane[pane_id] = route
        return pane_ids
