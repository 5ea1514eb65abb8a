from __future__ import annotations

from typing import Dict, List, Optional, Tuple
from plotly import graph_objects as go

from ..render import RenderModel
from .colors import RELATION_COLORS, DEFAULT_LINK_COLOR
from .layout import force_layout

# Screen pixels per unit of render radius in the static figure.
MARKER_SCALE = 1.5


def _edge_traces(model: RenderModel, pos: Dict[str, Tuple[float, float]]) -> List[go.Scatter]:
    by_kind: Dict[str, dict] = {}
    for link in model.links:
        if link.source_id not in pos or link.target_id not in pos:
            continue
        x0, y0 = pos[link.source_id]
        x1, y1 = pos[link.target_id]
        seg = by_kind.setdefault(link.relation_kind, {"x": [], "y": [], "cd": [], "w": []})
        cd = {
            "source_id": link.source_id,
            "target_id": link.target_id,
            "importance": link.importance,
            "frequency": link.frequency,
        }
        seg["x"] += [x0, x1, None]
        seg["y"] += [y0, y1, None]
        seg["cd"] += [cd, cd, None]
        seg["w"].append(link.width)

    traces = []
    for kind, seg in by_kind.items():
        # plotly lines take one width per trace; use the kind's mean link width
        width = sum(seg["w"]) / len(seg["w"]) if seg["w"] else 1
        traces.append(go.Scatter(
            x=seg["x"],
            y=seg["y"],
            mode="lines",
            name=kind.title(),
            hoverinfo="text",
            hovertext=[
                f"{kind} · importance {cd['importance']} · frequency {cd['frequency']}" if cd else ""
                for cd in seg["cd"]
            ],
            line=dict(width=max(width, 0.5), color=RELATION_COLORS.get(kind, DEFAULT_LINK_COLOR)),
            customdata=seg["cd"],
        ))
    return traces


def build_plotly_figure(
    model: RenderModel,
    positions: Optional[Dict[str, Tuple[float, float]]] = None,
    seed: int = 42,
) -> go.Figure:
    if not model.nodes:
        fig = go.Figure()
        fig.update_layout(title="No relationships match the current filters")
        return fig

    if positions is None:
        positions = force_layout(
            [n.id for n in model.nodes],
            [(l.source_id, l.target_id, float(l.weight)) for l in model.links],
            seed=seed,
        )

    nodes = [n for n in model.nodes if n.id in positions]
    node_trace = go.Scatter(
        x=[positions[n.id][0] for n in nodes],
        y=[positions[n.id][1] for n in nodes],
        mode="markers+text",
        text=[n.label for n in nodes],
        textposition="middle center",
        hoverinfo="text",
        hovertext=[f"{n.label}<br>ID: {n.id}<br>Connections: {n.size_hint}" for n in nodes],
        marker=dict(
            size=[2 * n.radius * model.scale * MARKER_SCALE for n in nodes],
            color=[n.fill_color for n in nodes],
            line=dict(
                width=[n.border_width * model.scale for n in nodes],
                color=[n.border_color for n in nodes],
            ),
        ),
        textfont=dict(size=9, color=[n.text_color for n in nodes]),
        customdata=[n.id for n in nodes],
        showlegend=False,
    )

    fig = go.Figure(data=[*_edge_traces(model, positions), node_trace])
    fig.update_layout(
        showlegend=True,
        hovermode="closest",
        dragmode="pan",
        autosize=True,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor="#111827",
        paper_bgcolor="#111827",
        xaxis=dict(showgrid=False, zeroline=False, showticklabels=False, scaleanchor="y", scaleratio=1),
        yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
    )
    return fig

