import os
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse, Response

from . import analytics, schemas
from .errors import InvalidFilterRange, NotFound
from .filters import FilterSpec
from .orchestrator import LOCAL_REPORTS, SERVER_REPORTS, ViewController
from .plotly_graph.plotly_render import build_plotly_figure

GRAPH_SOURCE = os.environ.get("GRAPH_SOURCE", "kuzu")

app = FastAPI(title="socialgraph")
_controller: Optional[ViewController] = None


async def get_controller() -> ViewController:
    global _controller
    if _controller is None:
        if GRAPH_SOURCE == "graphql":
            from .sources.graphql import GraphQLSource
            source = GraphQLSource()
        else:
            from .db import connect
            from .sources.kuzu_store import KuzuSource
            source = KuzuSource(connect())
        _controller = ViewController(source)
    return _controller


_STATUS = {"NotFound": 404, "SourceError": 502}


def _raise_for_error(ctrl: ViewController, action: str):
    err = ctrl.state.error
    if err is not None and err.action == action:
        raise HTTPException(_STATUS.get(err.code, 400), err.message)


async def _ensure_loaded(ctrl: ViewController):
    if ctrl.state.view is None:
        await ctrl.load()
        _raise_for_error(ctrl, "load")


def _person_out(ctrl: ViewController, person, count: Optional[int] = None) -> schemas.PersonOut:
    if count is None:
        count = ctrl.state.people.connection_count(person.id) if person.id in ctrl.state.people else 0
    return schemas.PersonOut(
        id=person.id, name=person.name, nickname=person.nickname,
        email=person.email, photo_url=person.photo_url, connection_count=count,
    )


def _view_payload(ctrl: ViewController) -> dict:
    return {
        "graph": ctrl.state.render.to_dict(),
        "selection": ctrl.state.selection.to_dict(),
        "error": None if ctrl.state.error is None else asdict(ctrl.state.error),
    }


@app.get("/api/people", response_model=list[schemas.PersonOut])
async def people(q: str = "", ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    term = q.strip().lower()
    found = [
        p for p in ctrl.state.people
        if not term
        or term in p.name.lower()
        or term in (p.nickname or "").lower()
        or term in p.email.lower()
    ]
    return [_person_out(ctrl, p) for p in found]


@app.get("/api/people/{person_id}")
async def person_detail(person_id: str, ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    snap = ctrl.state.people
    try:
        person = snap.get(person_id)
        edges = analytics.edges_by_importance(snap, person_id)
    except NotFound as e:
        raise HTTPException(404, str(e))
    return {
        "person": _person_out(ctrl, person).model_dump(),
        "influence": analytics.influence_score(snap, person_id),
        "relationships": [
            schemas.RelationshipOut(
                source_id=e.source_id, target_id=e.target_id, kind=e.kind,
                frequency=e.frequency, importance=e.importance,
            ).model_dump(mode="json")
            for e in edges
        ],
    }


@app.get("/api/graph")
async def graph(scale: float = 1.0, ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    if scale != ctrl.state.scale:
        ctrl.set_scale(scale)
        _raise_for_error(ctrl, "zoom")
    return _view_payload(ctrl)


@app.post("/api/graph/reload")
async def reload_graph(ctrl: ViewController = Depends(get_controller)):
    await ctrl.load()
    _raise_for_error(ctrl, "load")
    return _view_payload(ctrl)


@app.get("/api/filters", response_model=schemas.FilterIn)
async def get_filters(ctrl: ViewController = Depends(get_controller)):
    spec = ctrl.state.filters
    return schemas.FilterIn(
        kinds=sorted(spec.kinds, key=lambda k: k.value),
        frequency_range=spec.frequency_range,
        importance_range=spec.importance_range,
        prune_isolated=spec.prune_isolated,
    )


@app.put("/api/filters")
async def set_filters(body: schemas.FilterIn, ctrl: ViewController = Depends(get_controller)):
    try:
        spec = FilterSpec.create(body.kinds, body.frequency_range, body.importance_range, body.prune_isolated)
    except InvalidFilterRange as e:
        raise HTTPException(400, str(e))
    await ctrl.set_filters(spec)
    _raise_for_error(ctrl, "load")
    return _view_payload(ctrl)


@app.post("/api/selection/{person_id}")
async def select(person_id: str, ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    ctrl.select(person_id)
    _raise_for_error(ctrl, "select")
    return _view_payload(ctrl)


@app.delete("/api/selection")
async def clear_selection(ctrl: ViewController = Depends(get_controller)):
    ctrl.clear_selection()
    return _view_payload(ctrl)


@app.get("/api/reports")
def list_reports():
    return {"local": list(LOCAL_REPORTS), "server": list(SERVER_REPORTS)}


@app.get("/api/reports/{name}", response_model=schemas.ReportOut)
async def run_report(name: str, person_id: Optional[str] = None, second_id: Optional[str] = None,
                     limit: int = 10, ctrl: ViewController = Depends(get_controller)):
    if name not in LOCAL_REPORTS and name not in SERVER_REPORTS:
        raise HTTPException(404, f"Unknown report: {name}")
    await _ensure_loaded(ctrl)
    result = await ctrl.run_report(name, person_id, second_id, limit)
    if result is None:
        _raise_for_error(ctrl, name)
        raise HTTPException(409, "Report was superseded by a newer request")
    return schemas.ReportOut(
        report=name,
        people=[_person_out(ctrl, p, c) for p, c in zip(result.people, result.counts or [None] * len(result.people))],
        scores=result.scores,
        discrepancies=result.discrepancies,
    )


@app.post("/api/retry")
async def retry(ctrl: ViewController = Depends(get_controller)):
    ran = await ctrl.retry()
    return {"retried": ran, **_view_payload(ctrl)}


@app.get("/api/graph/figure")
async def figure(ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    fig = build_plotly_figure(ctrl.state.render)
    return Response(fig.to_json(), media_type="application/json")


@app.get("/graph.html", response_class=HTMLResponse, include_in_schema=False)
async def graph_page(ctrl: ViewController = Depends(get_controller)):
    await _ensure_loaded(ctrl)
    fig = build_plotly_figure(ctrl.state.render)
    return HTMLResponse(fig.to_html(include_plotlyjs="cdn", full_html=True,
                                    config={"scrollZoom": True, "responsive": True}))


@app.get("/health")
def health():
    return {"ok": True}
