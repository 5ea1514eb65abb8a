"""Per-view state container and the controller that drives it.

The controller is the only component that talks to a RelationshipSource.
Every remote call is tagged with a sequence number per channel; a response
that is not for the latest request on its channel is dropped. Failures never
blank the view: the last good render model stays in place and the error is
recorded for display, with remote failures marked retryable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from . import analytics
from .errors import GraphError, NotFound, SourceError, StaleResponse
from .filters import DEFAULT_FILTER, FilteredView, FilterSpec, apply_filter
from .models import Person, RelationKind
from .render import DEFAULT_OPTIONS, RenderModel, RenderOptions, project
from .schemas import NeighborList, RankedPeople, SinglePerson
from .selection import SelectionState
from .snapshot import GraphSnapshot
from .sources.base import RelationshipSource

logger = logging.getLogger(__name__)

GRAPH = "graph"
REPORT = "report"


class RequestSequencer:
    """Monotonic request numbers per channel."""

    def __init__(self):
        self._latest: Dict[str, int] = {}

    def issue(self, channel: str) -> int:
        seq = self._latest.get(channel, 0) + 1
        self._latest[channel] = seq
        return seq

    def latest(self, channel: str) -> int:
        return self._latest.get(channel, 0)

    def is_latest(self, channel: str, seq: int) -> bool:
        return seq == self._latest.get(channel, 0)

    def check(self, channel: str, seq: int):
        if not self.is_latest(channel, seq):
            raise StaleResponse(channel, seq, self.latest(channel))


@dataclass
class ViewError:
    message: str
    retryable: bool = False
    action: Optional[str] = None
    code: str = ""


@dataclass
class ReportResult:
    name: str
    people: List[Person] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)
    counts: List[int] = field(default_factory=list)
    # ids whose store-computed score disagrees with the local computation
    discrepancies: List[str] = field(default_factory=list)


@dataclass
class ViewState:
    people: GraphSnapshot = field(default_factory=GraphSnapshot.empty)
    view: Optional[FilteredView] = None
    filters: FilterSpec = DEFAULT_FILTER
    selection: SelectionState = field(default_factory=SelectionState)
    scale: float = 1.0
    render: RenderModel = field(default_factory=RenderModel)
    report: Optional[ReportResult] = None
    error: Optional[ViewError] = None
    loading: bool = False


LOCAL_REPORTS = ("friends", "family", "common_friends", "most_connected", "influential", "top_influential")
SERVER_REPORTS = (
    "server_friends", "server_family", "server_mutual_friends",
    "server_most_connected", "server_top_influential",
)


class ViewController:
    def __init__(self, source: RelationshipSource, state: Optional[ViewState] = None,
                 options: RenderOptions = DEFAULT_OPTIONS):
        self.source = source
        self.state = state or ViewState()
        self.options = options
        self.sequencer = RequestSequencer()
        self._retry: Optional[Callable[[], Awaitable]] = None

    # ── error bookkeeping ──

    def _fail(self, err: Exception, action: Optional[str] = None,
              retry: Optional[Callable[[], Awaitable]] = None):
        retryable = isinstance(err, SourceError)
        if retryable:
            logger.warning("%s failed: %s", action or "request", err)
        self.state.error = ViewError(str(err), retryable=retryable, action=action, code=type(err).__name__)
        self._retry = retry if retryable else None

    def _ok(self, action: str):
        """Clear the recorded error unless it is a retryable failure of another action."""
        err = self.state.error
        if err is None or err.action == action or not err.retryable:
            self.state.error = None
            self._retry = None

    async def retry(self) -> bool:
        """Re-run the action whose remote call last failed."""
        if self._retry is None:
            return False
        action = self._retry
        await action()
        return True

    # ── graph loading ──

    async def load(self) -> bool:
        """Fetch people (and the filtered variant when a filter is active).

        Returns False when the response was superseded or failed.
        """
        seq = self.sequencer.issue(GRAPH)
        spec = self.state.filters
        self.state.loading = True
        try:
            everyone = await self.source.fetch_all()
            filtered = await self.source.fetch_filtered(spec) if spec.is_active else everyone
            self.sequencer.check(GRAPH, seq)
        except StaleResponse as e:
            logger.debug("%s", e)
            return False
        except GraphError as e:
            if self.sequencer.is_latest(GRAPH, seq):
                self.state.loading = False
                self._fail(e, action="load", retry=self.load)
            return False

        self.state.loading = False
        people = GraphSnapshot.from_connections(everyone.people)
        shown = people if filtered is everyone else GraphSnapshot.from_connections(filtered.people)
        # The store may or may not drop isolated people; prune_isolated is applied here.
        self.state.people = people
        self.state.view = apply_filter(shown, spec)
        self.state.selection.forget(people.ids())
        self._ok("load")
        self.rerender()
        return True

    async def set_filters(self, spec: FilterSpec) -> bool:
        self.state.filters = spec
        return await self.load()

    def rerender(self) -> RenderModel:
        if self.state.view is None:
            return self.state.render
        try:
            self.state.render = project(self.state.view, self.state.selection, self.state.scale, self.options)
        except (GraphError, ValueError) as e:
            self._fail(e, action="render")
        return self.state.render

    def set_scale(self, scale: float) -> RenderModel:
        if scale <= 0:
            self._fail(ValueError("scale must be positive"), action="zoom")
            return self.state.render
        self.state.scale = scale
        return self.rerender()

    # ── interaction ──

    def select(self, person_id: str) -> RenderModel:
        if person_id not in self.state.people:
            self._fail(NotFound(person_id), action="select")
            return self.state.render
        self.state.selection.select(person_id)
        self._ok("select")
        return self.rerender()

    def clear_selection(self) -> RenderModel:
        """Background or link click."""
        self.state.selection.clear()
        return self.rerender()

    # ── reports ──

    def _person_args(self, name: str, person_id: Optional[str], second_id: Optional[str], pairwise: bool):
        sel = self.state.selection
        first = person_id or sel.first or sel.focused
        if pairwise:
            second = second_id or sel.second
            if not first or not second:
                raise ValueError(f"Report {name} needs two people")
            return first, second
        if not first:
            raise ValueError(f"Report {name} needs a person")
        return first, None

    def _local_report(self, name: str, person_id, second_id, limit: int) -> ReportResult:
        snap = self.state.people
        if name in ("friends", "family"):
            pid, _ = self._person_args(name, person_id, second_id, pairwise=False)
            kind = RelationKind.FRIEND if name == "friends" else RelationKind.FAMILY
            people = analytics.neighbors_by_kind(snap, pid, kind)
            return ReportResult(name, people, counts=[snap.connection_count(p.id) for p in people])
        if name == "common_friends":
            a, b = self._person_args(name, person_id, second_id, pairwise=True)
            people = analytics.mutual_neighbors(snap, a, b, RelationKind.FRIEND)
            return ReportResult(name, people, counts=[snap.connection_count(p.id) for p in people])
        if name == "most_connected":
            top = analytics.most_connected(snap)
            return ReportResult(name, [top.person], [top.score], [top.connection_count])
        if name == "influential":
            top = analytics.most_influential(snap)
            return ReportResult(name, [top.person], [top.score], [top.connection_count])
        ranked = analytics.top_influential(snap, limit)
        return ReportResult(
            name, [r.person for r in ranked], [r.score for r in ranked], [r.connection_count for r in ranked]
        )

    async def _server_report(self, name: str, person_id, second_id, limit: int) -> ReportResult:
        if name in ("server_friends", "server_family"):
            pid, _ = self._person_args(name, person_id, second_id, pairwise=False)
            kind = RelationKind.FRIEND if name == "server_friends" else RelationKind.FAMILY
            return self._from_neighbors(name, await self.source.fetch_neighbors(pid, kind))
        if name == "server_mutual_friends":
            a, b = self._person_args(name, person_id, second_id, pairwise=True)
            return self._from_neighbors(name, await self.source.fetch_mutual_neighbors(a, b))
        if name == "server_most_connected":
            return self._from_single(name, await self.source.fetch_most_connected())
        return self._from_ranked(name, await self.source.fetch_top_influential(limit))

    @staticmethod
    def _from_neighbors(name: str, result: NeighborList) -> ReportResult:
        return ReportResult(name, list(result.people), counts=list(result.counts))

    @staticmethod
    def _from_single(name: str, result: SinglePerson) -> ReportResult:
        if result.person is None:
            return ReportResult(name)
        return ReportResult(name, [result.person], [float(result.connection_count)], [result.connection_count])

    def _from_ranked(self, name: str, result: RankedPeople) -> ReportResult:
        report = ReportResult(
            name,
            [e.person for e in result.entries],
            [e.score for e in result.entries],
            [e.connection_count for e in result.entries],
        )
        snap = self.state.people
        for e in result.entries:
            if e.person.id in snap and abs(analytics.average_importance(snap, e.person.id) - e.score) > 1e-6:
                report.discrepancies.append(e.person.id)
        if report.discrepancies:
            logger.warning("Store ranking disagrees with local averages for %s", report.discrepancies)
        return report

    async def run_report(self, name: str, person_id: Optional[str] = None,
                         second_id: Optional[str] = None, limit: int = 10) -> Optional[ReportResult]:
        """Run a named report; returns None when it failed or was superseded."""
        if name not in LOCAL_REPORTS and name not in SERVER_REPORTS:
            self._fail(ValueError(f"Unknown report: {name}"), action="report")
            return None
        seq = self.sequencer.issue(REPORT)

        async def again():
            return await self.run_report(name, person_id, second_id, limit)

        try:
            if name in LOCAL_REPORTS:
                result = self._local_report(name, person_id, second_id, limit)
            else:
                result = await self._server_report(name, person_id, second_id, limit)
            self.sequencer.check(REPORT, seq)
        except StaleResponse as e:
            logger.debug("%s", e)
            return None
        except (GraphError, ValueError) as e:
            if self.sequencer.is_latest(REPORT, seq):
                self._fail(e, action=name, retry=again)
            return None

        self.state.report = result
        self._ok(name)
        return result
