"""Projection of a filtered view plus selection into the render model.

The render model is the node/link list a force-directed simulation consumes,
with every visual encoding already resolved. ``project`` keeps no state: the
same inputs always give the same model.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

from .filters import FilteredView
from .plotly_graph import colors
from .selection import SelectionState


@dataclass(frozen=True)
class RenderOptions:
    base_radius: float = 8.0
    per_connection_bonus: float = 2.0
    font_size: float = 17.0
    border_width: float = 2.0
    focused_border_width: float = 4.0
    link_width_per_importance: float = 0.3
    particle_speed_per_frequency: float = 0.0005
    particle_width_per_importance: float = 0.5
    min_link_width: float = 0.1
    min_particle_speed: float = 0.0001
    min_particle_width: float = 0.1


@dataclass(frozen=True)
class SimulationSettings:
    warmup_ticks: int = 500
    cooldown_ticks: int = 5000
    cooldown_time_ms: int = 60000
    alpha_min: float = 0.00001
    alpha_decay: float = 0.015
    velocity_decay: float = 0.8
    particles_per_link: int = 2
    node_rel_size: int = 4


@dataclass(frozen=True)
class RenderNode:
    id: str
    label: str
    size_hint: int
    radius: float
    value: float
    fill_color: str
    border_color: str
    border_width: float
    text_color: str
    font_size: float
    focused: bool = False
    paired: bool = False


@dataclass(frozen=True)
class RenderLink:
    source_id: str
    target_id: str
    weight: int
    relation_kind: str
    importance: int
    frequency: int
    color: str
    width: float
    particle_speed: float
    particle_width: float


@dataclass(frozen=True)
class RenderModel:
    nodes: Tuple[RenderNode, ...] = ()
    links: Tuple[RenderLink, ...] = ()
    scale: float = 1.0
    simulation: SimulationSettings = field(default_factory=SimulationSettings)

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_OPTIONS = RenderOptions()


def node_radius(count: int, scale: float = 1.0, options: RenderOptions = DEFAULT_OPTIONS) -> float:
    """``(base + bonus * count) / scale``: constant apparent size under zoom."""
    if scale <= 0:
        raise ValueError("scale must be positive")
    return (options.base_radius + options.per_connection_bonus * max(count, 0)) / scale


def link_width(importance: float, options: RenderOptions = DEFAULT_OPTIONS) -> float:
    return max(importance * options.link_width_per_importance, options.min_link_width)


def particle_speed(frequency: float, options: RenderOptions = DEFAULT_OPTIONS) -> float:
    return max(frequency * options.particle_speed_per_frequency, options.min_particle_speed)


def particle_width(importance: float, options: RenderOptions = DEFAULT_OPTIONS) -> float:
    return max(importance * options.particle_width_per_importance, options.min_particle_width)


def project(
    view: FilteredView,
    selection: Optional[SelectionState] = None,
    scale: float = 1.0,
    options: RenderOptions = DEFAULT_OPTIONS,
) -> RenderModel:
    """Build the render model for ``view`` under ``selection`` at zoom ``scale``.

    Links are emitted only when both ends are in the display set.
    """
    if scale <= 0:
        raise ValueError("scale must be positive")
    focused = selection.focused if selection else None
    pair = set(selection.pair) if selection else set()
    snap = view.snapshot

    people = view.visible_people()
    nodes: List[RenderNode] = []
    for person in people:
        pid = person.id
        count = snap.connection_count(pid)
        is_focused = pid == focused
        fill = colors.HIGHLIGHT_COLOR if is_focused else colors.identity_color(pid)
        border = options.focused_border_width if is_focused else options.border_width
        nodes.append(RenderNode(
            id=pid,
            label=person.name or pid,
            size_hint=count,
            radius=node_radius(count, scale, options),
            value=max(1 + count * 0.5, 1),
            fill_color=fill,
            border_color=colors.HIGHLIGHT_COLOR if is_focused else colors.NEUTRAL_BORDER,
            border_width=border / scale,
            text_color=colors.text_color_for(fill),
            font_size=options.font_size / scale,
            focused=is_focused,
            paired=pid in pair,
        ))

    visible = {p.id for p in people}
    links: List[RenderLink] = []
    for person in people:
        for e in snap.outgoing(person.id):
            if e.target_id not in visible:
                continue
            links.append(RenderLink(
                source_id=e.source_id,
                target_id=e.target_id,
                weight=e.importance,
                relation_kind=e.kind.value,
                importance=e.importance,
                frequency=e.frequency,
                color=colors.relation_color(e.kind),
                width=link_width(e.importance, options),
                particle_speed=particle_speed(e.frequency, options),
                particle_width=particle_width(e.importance, options),
            ))

    return RenderModel(nodes=tuple(nodes), links=tuple(links), scale=scale)
