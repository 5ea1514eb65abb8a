"""Tests for the plotly figure and force layout built from the render model."""
from socialgraph.filters import apply_filter
from socialgraph.plotly_graph import plotly_render
from socialgraph.plotly_graph.layout import force_layout
from socialgraph.render import RenderModel, project
from socialgraph.selection import SelectionState


class TestForceLayout:
    def test_every_node_placed(self):
        pos = force_layout(["a", "b", "c"], [("a", "b", 5.0)])
        assert set(pos) == {"a", "b", "c"}

    def test_seeded(self):
        links = [("a", "b", 5.0), ("b", "c", 2.0)]
        assert force_layout(["a", "b", "c"], links, seed=7) == force_layout(["a", "b", "c"], links, seed=7)

    def test_ignores_unknown_endpoints(self):
        pos = force_layout(["a", "b"], [("a", "ghost", 1.0), ("a", "b", 1.0)])
        assert set(pos) == {"a", "b"}

    def test_degenerate(self):
        assert force_layout([], []) == {}
        assert force_layout(["solo"], []) == {"solo": (0.0, 0.0)}


class TestFigure:
    def test_empty_model(self):
        fig = plotly_render.build_plotly_figure(RenderModel())
        assert len(fig.data) == 0
        assert "No relationships" in fig.layout.title.text

    def test_traces(self, social_snapshot):
        model = project(apply_filter(social_snapshot), SelectionState().select("ann"))
        fig = plotly_render.build_plotly_figure(model)
        node_trace = next(t for t in fig.data if "markers" in t.mode)
        edge_traces = [t for t in fig.data if t.mode == "lines"]
        assert list(node_trace.customdata) == ["ann", "bob", "cat", "dan", "fay"]
        assert {t.name for t in edge_traces} == {"Friend", "Family", "Colleague"}
        # focused node carries the highlight color
        assert node_trace.marker.color[0] == "#fbbf24"

    def test_explicit_positions(self, example_snapshot):
        model = project(apply_filter(example_snapshot))
        positions = {"p1": (0.0, 0.0), "p2": (1.0, 0.0), "p3": (0.0, 1.0)}
        fig = plotly_render.build_plotly_figure(model, positions=positions)
        node_trace = next(t for t in fig.data if "markers" in t.mode)
        assert list(node_trace.x) == [0.0, 1.0, 0.0]
        assert list(node_trace.y) == [0.0, 0.0, 1.0]

    def test_edge_segments(self, example_snapshot):
        model = project(apply_filter(example_snapshot))
        positions = {"p1": (0.0, 0.0), "p2": (1.0, 0.0), "p3": (0.0, 1.0)}
        fig = plotly_render.build_plotly_figure(model, positions=positions)
        friend = next(t for t in fig.data if t.mode == "lines" and t.name == "Friend")
        assert list(friend.x) == [0.0, 1.0, None]
