"""
Pytest configuration and fixtures for osc_panel_lib tests.
"""

import itertools

import pytest

from osc_panel_lib.model import (
    AppState, Control, Layout, PresetNode, PresetTree, SliderSpec,
)


def build_tree(spec) -> PresetTree:
    """
    Build a PresetTree from nested tuples: (id, is_on, [children...]).

    The node name is the id upper-cased.
    """
    nodes = {}

    def visit(item):
        node_id, is_on, children = item
        child_ids = tuple(visit(child) for child in children)
        nodes[node_id] = PresetNode(id=node_id, name=node_id.upper(), is_on=is_on, children=child_ids)
        return node_id

    roots = tuple(visit(item) for item in spec)
    return PresetTree(nodes=nodes, roots=roots)


@pytest.fixture
def sample_tree():
    """
    a(on)
      b(on)
        d(off)
      c(on)
    e(off)
      f(on)
    """
    return build_tree([
        ("a", True, [
            ("b", True, [("d", False, [])]),
            ("c", True, []),
        ]),
        ("e", False, [("f", True, [])]),
    ])


@pytest.fixture
def id_factory():
    """Deterministic id generator: new-1, new-2, ..."""
    counter = itertools.count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def sample_layout(sample_tree):
    """Layout over sample_tree with controls gated by different presets."""
    controls = (
        Control(id="master", name="Master", address="/mix", spec=SliderSpec(), always_visible=True),
        Control(id="kick", name="Kick", address="/drums", always_visible=False, preset_ids=("b",)),
        Control(id="snare", name="Snare", address="/drums", always_visible=False, preset_ids=("c", "b")),
        Control(id="hidden", name="Hidden", address="/x", always_visible=False, preset_ids=("d",)),
        Control(id="muted", name="Muted", address="/x", always_visible=False, preset_ids=("f",)),
    )
    return Layout(id="layout-1", name="Live", controls=controls, preset_tree=sample_tree, port="9000")


@pytest.fixture
def sample_state(sample_layout):
    return AppState(
        host="127.0.0.1",
        port="9000",
        layouts=(sample_layout,),
        selected_layout_id=sample_layout.id,
    )


@pytest.fixture
def tree_builder():
    """The build_tree helper, for tests that need their own shapes."""
    return build_tree
