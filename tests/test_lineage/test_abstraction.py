"""
Unit tests for the vertex/edge abstraction and the result assembler.

Run with: pytest tests/test_lineage/test_abstraction.py -v
"""

from src.lineage.abstraction import PropertyAllowList, VertexMapper
from src.lineage.assembler import ResultAssembler, assemble, merge, prune
from src.lineage.config import LineageSettings
from src.lineage.graph_store import RawEdge, RawVertex
from src.lineage.models import LineageEdge, LineageVertex, LineageVerticesAndEdges


def _raw(vertex_id, label="RelationalTable", **properties):
    return RawVertex(vertex_id, label, properties)


# ──────────────────────────────────────────────────
# PropertyAllowList
# ──────────────────────────────────────────────────


class TestPropertyAllowList:

    def test_longest_prefix_wins(self):
        allow_list = PropertyAllowList.from_settings(LineageSettings())
        assert allow_list.strip_prefixes == ("veprop", "ve")
        assert allow_list.public_key("vepropqualifiedName") == "qualifiedName"
        assert allow_list.public_key("vetype") == "type"

    def test_prefix_order_from_settings_is_normalised(self):
        settings = LineageSettings(property_strip_prefixes=["ve", "veprop"])
        allow_list = PropertyAllowList.from_settings(settings)
        assert allow_list.public_key("vepropname") == "name"

    def test_prefix_only_at_start(self):
        allow_list = PropertyAllowList()
        assert allow_list.public_key("displayName") == "displayName"
        assert allow_list.public_key("moveprop") == "moveprop"

    def test_bare_prefix_is_kept(self):
        assert PropertyAllowList().public_key("ve") == "ve"

    def test_apply_filters_and_stringifies(self):
        allow_list = PropertyAllowList()
        exposed = allow_list.apply({
            "vepropqualifiedName": "db.orders",
            "veversion": 3,
            "vepropdescription": None,
            "secretInternal": "x",
            "veguid": "A",
        })
        assert exposed == {"qualifiedName": "db.orders", "version": "3"}

    def test_custom_allow_list(self):
        settings = LineageSettings(property_allow_list=["veguid"])
        allow_list = PropertyAllowList.from_settings(settings)
        assert allow_list.apply({"veguid": "A", "vepropqualifiedName": "q"}) == {"guid": "A"}

    def test_expand_all_flattens_embedded_maps(self):
        expanded = PropertyAllowList().expand_all({
            "vepropqualifiedName": "db.orders",
            "vepropadditionalProperties": "owner: sales, tier: gold",
            "vepropextendedProperties": "retention: 30d",
            "veempty": None,
        })
        assert expanded == {
            "qualifiedName": "db.orders",
            "owner": "sales",
            "tier": "gold",
            "retention": "30d",
        }

    def test_expand_all_skips_malformed_pairs(self):
        expanded = PropertyAllowList().expand_all({"vepropadditionalProperties": "owner: sales, junk"})
        assert expanded == {"owner": "sales"}


# ──────────────────────────────────────────────────
# VertexMapper
# ──────────────────────────────────────────────────


class TestVertexMapper:

    def test_node_id_is_guid(self):
        assert VertexMapper.node_id(_raw(7, veguid="A")) == "A"

    def test_node_id_falls_back_to_store_id(self):
        assert VertexMapper.node_id(_raw(7)) == "7"

    def test_sub_process_uses_process_guid(self):
        raw = _raw(7, "subProcess", veguid="shared", vepropprocessGuid="proc-1")
        assert VertexMapper.node_id(raw) == "proc-1"

    def test_sub_process_without_process_guid(self):
        assert VertexMapper.node_id(_raw(7, "subProcess", veguid="shared")) == "shared"

    def test_display_name_fallback(self):
        assert VertexMapper.display_name(_raw(1, displayName="a", vepropdisplayName="b")) == "a"
        assert VertexMapper.display_name(_raw(1, vepropdisplayName="b")) == "b"
        assert VertexMapper.display_name(_raw(1)) is None

    def test_vertex(self):
        raw = _raw(1, veguid="A", displayName="orders", vepropqualifiedName="db.orders")
        vertex = VertexMapper().vertex(raw)
        assert vertex.node_id == "A"
        assert vertex.kind == "RelationalTable"
        assert vertex.display_name == "orders"
        assert vertex.entity_guid == "A"
        assert vertex.properties == {"qualifiedName": "db.orders"}

    def test_edge_uses_node_ids(self):
        a, b = _raw(1, veguid="A"), _raw(2, veguid="B")
        edge = VertexMapper().edge(RawEdge("e1", "TableDataFlow", a, b))
        assert edge == LineageEdge("TableDataFlow", "A", "B")

    def test_details_exposes_everything(self):
        raw = _raw(1, veguid="A", vepropadditionalProperties="owner: sales")
        details = VertexMapper().details(raw)
        assert details.properties == {"guid": "A", "owner": "sales"}


# ──────────────────────────────────────────────────
# Assembler
# ──────────────────────────────────────────────────


class TestAssembler:

    def test_assemble_first_vertex_wins(self):
        first = LineageVertex("A", "RelationalTable", "first")
        second = LineageVertex("A", "RelationalTable", "second")
        result = assemble([first, second], [])
        assert result.vertex("A").display_name == "first"

    def test_merge_unions_by_identity(self):
        left = LineageVerticesAndEdges.of(
            [LineageVertex("A", "t"), LineageVertex("B", "t")], [LineageEdge("x", "A", "B")],
        )
        right = LineageVerticesAndEdges.of(
            [LineageVertex("B", "t"), LineageVertex("C", "t")],
            [LineageEdge("x", "A", "B"), LineageEdge("x", "B", "C")],
        )
        merged = merge(left, right)
        assert merged.node_ids == {"A", "B", "C"}
        assert len(merged.edges) == 2

    def test_prune_removes_touching_edges(self):
        result = LineageVerticesAndEdges.of(
            [LineageVertex("A", "t"), LineageVertex("B", "t"), LineageVertex("C", "t")],
            [LineageEdge("x", "A", "B"), LineageEdge("x", "B", "C"), LineageEdge("x", "A", "C")],
        )
        pruned = prune(result, {"B"})
        assert pruned.node_ids == {"A", "C"}
        assert pruned.edges == {LineageEdge("x", "A", "C")}

    def test_prune_nothing_returns_same(self):
        result = LineageVerticesAndEdges.of([LineageVertex("A", "t")])
        assert prune(result, []) is result

    def test_from_traversals(self, two_roots_store):
        from src.lineage.graph_store import Direction

        c = two_roots_store.get_vertex("C")
        up = two_roots_store.bounded_repeat(c, Direction.UPSTREAM, ["TableDataFlow"])
        down = two_roots_store.bounded_repeat(c, Direction.DOWNSTREAM, ["TableDataFlow"])
        result = ResultAssembler(VertexMapper()).from_traversals(up, down)
        assert result.node_ids == {"A1", "A2", "P", "C", "D", "E1", "E2"}
        assert len(result.edges) == 6
        assert not result.dangling_edges()
