import pytest

from ldproc import jsonld
from ldproc.errors import JsonLdError
from ldproc.identifier_issuer import IdentifierIssuer

CTX = {"@vocab": "http://ex/"}


class TestFlatten:
    def test_nodes_are_sorted_by_id(self):
        doc = {
            "@context": CTX,
            "@id": "http://ex/a",
            "name": "A",
            "knows": {"@id": "http://ex/b", "name": "B"},
        }
        assert jsonld.flatten(doc) == [
            {"@id": "http://ex/a",
             "http://ex/knows": [{"@id": "http://ex/b"}],
             "http://ex/name": [{"@value": "A"}]},
            {"@id": "http://ex/b",
             "http://ex/name": [{"@value": "B"}]},
        ]

    def test_references_only_are_dropped(self):
        doc = {"@id": "http://ex/a", "http://ex/p": {"@id": "http://ex/c"}}
        assert jsonld.flatten(doc) == [
            {"@id": "http://ex/a", "http://ex/p": [{"@id": "http://ex/c"}]}]

    def test_blank_nodes_are_labelled(self):
        doc = {"http://ex/p": {"http://ex/q": "v"}}
        assert jsonld.flatten(doc) == [
            {"@id": "_:b0", "http://ex/p": [{"@id": "_:b1"}]},
            {"@id": "_:b1", "http://ex/q": [{"@value": "v"}]},
        ]

    def test_blank_node_labels_are_replaced(self):
        doc = {"@id": "_:x", "http://ex/p": {"@id": "_:x"}}
        assert jsonld.flatten(doc) == [
            {"@id": "_:b0", "http://ex/p": [{"@id": "_:b0"}]}]

    def test_nodes_are_merged(self):
        doc = [
            {"@id": "http://ex/a", "http://ex/p": "1"},
            {"@id": "http://ex/a", "http://ex/p": ["2", "1"]},
        ]
        assert jsonld.flatten(doc) == [{
            "@id": "http://ex/a",
            "http://ex/p": [{"@value": "1"}, {"@value": "2"}]}]

    def test_named_graph(self):
        doc = {
            "@id": "http://ex/g",
            "@graph": [{"@id": "http://ex/s", "http://ex/p": "v"}],
        }
        assert jsonld.flatten(doc) == [{
            "@id": "http://ex/g",
            "@graph": [
                {"@id": "http://ex/s", "http://ex/p": [{"@value": "v"}]}],
        }]

    def test_compacted_output_always_uses_graph(self):
        doc = {"@context": CTX, "@id": "http://ex/a", "name": "A"}
        assert jsonld.flatten(doc, CTX) == {
            "@context": CTX,
            "@graph": [{"@id": "http://ex/a", "name": "A"}],
        }

    def test_compacted_references(self):
        doc = {
            "@context": CTX,
            "@id": "http://ex/a",
            "knows": {"@id": "http://ex/b", "name": "B"},
        }
        assert jsonld.flatten(doc, CTX)["@graph"] == [
            {"@id": "http://ex/a", "knows": {"@id": "http://ex/b"}},
            {"@id": "http://ex/b", "name": "B"},
        ]

    def test_invalid_input(self):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.flatten({"@id": 5})
        error = exc_info.value
        assert error.type == 'jsonld.FlattenError'
        assert error.cause.code == 'invalid @id value'


class TestIdentifierIssuer:
    def test_source_labels_are_stable(self):
        issuer = IdentifierIssuer()
        assert issuer.get_id('_:x') == '_:b0'
        assert issuer.get_id() == '_:b1'
        assert issuer.get_id('_:y') == '_:b2'
        assert issuer.get_id('_:x') == '_:b0'
        assert issuer.issued == {'_:x': '_:b0', '_:y': '_:b2'}

    def test_relabel_keeps_iris(self):
        issuer = IdentifierIssuer('_:c')
        assert issuer.relabel('http://ex/a') == 'http://ex/a'
        assert issuer.relabel('_:a') == '_:c0'
