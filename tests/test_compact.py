import pytest

from ldproc import jsonld
from ldproc.errors import JsonLdError

XSD_INTEGER = 'http://www.w3.org/2001/XMLSchema#integer'

DOC = {
    "http://schema.org/name": "Manu Sporny",
    "http://schema.org/url": {"@id": "http://manu.sporny.org/"},
}

CONTEXT = {
    "name": "http://schema.org/name",
    "homepage": {"@id": "http://schema.org/url", "@type": "@id"},
}


class TestCompact:
    def test_terms_and_type_coercion(self):
        assert jsonld.compact(DOC, CONTEXT) == {
            "@context": CONTEXT,
            "homepage": "http://manu.sporny.org/",
            "name": "Manu Sporny",
        }

    def test_context_document_is_unwrapped(self):
        compacted = jsonld.compact(DOC, {"@context": CONTEXT})
        assert compacted["@context"] == CONTEXT
        assert compacted["name"] == "Manu Sporny"

    def test_compact_expanded_input(self):
        compacted = jsonld.compact(DOC, CONTEXT)
        assert jsonld.compact(jsonld.expand(compacted), CONTEXT) == compacted

    def test_skip_expansion(self):
        expanded = jsonld.expand(DOC)
        assert jsonld.compact(
            expanded, CONTEXT, {'skipExpansion': True}) == jsonld.compact(
            DOC, CONTEXT)

    def test_typed_value(self):
        ctx = {"age": {"@id": "http://ex/age", "@type": XSD_INTEGER}}
        doc = {"http://ex/age": {"@value": "42", "@type": XSD_INTEGER}}
        assert jsonld.compact(doc, ctx) == {"@context": ctx, "age": "42"}

    def test_term_not_used_for_other_type(self):
        ctx = {"age": {"@id": "http://ex/age", "@type": XSD_INTEGER}}
        doc = {"http://ex/age": "unknown"}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx, "http://ex/age": "unknown"}

    def test_compact_iris(self):
        ctx = {"ex": "http://ex/"}
        doc = {"@id": "http://ex/s", "http://ex/p": "v"}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx, "@id": "ex:s", "ex:p": "v"}

    def test_vocab(self):
        ctx = {"@vocab": "http://ex/"}
        doc = {"@id": "http://ex/s", "@type": "http://ex/T",
               "http://ex/p": "v"}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx, "@id": "http://ex/s", "@type": "T", "p": "v"}

    def test_ids_relative_to_base(self):
        ctx = {"p": "http://ex/p"}
        doc = {"@id": "http://ex/docs/s", "p": "v", "@context": ctx}
        compacted = jsonld.compact(doc, ctx, {'base': 'http://ex/docs/'})
        assert compacted["@id"] == "s"

    def test_keyword_aliases(self):
        ctx = {"id": "@id", "type": "@type", "@vocab": "http://ex/"}
        doc = {"@id": "http://ex/s", "@type": "http://ex/T"}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx, "id": "http://ex/s", "type": "T"}

    def test_list_container(self):
        ctx = {"list": {"@id": "http://ex/list", "@container": "@list"}}
        doc = {"@id": "http://ex/s", "http://ex/list": {"@list": ["a", "b"]}}
        assert jsonld.compact(doc, ctx)["list"] == ["a", "b"]

    def test_list_without_container(self):
        ctx = {"p": "http://ex/p"}
        doc = {"@id": "http://ex/s", "http://ex/p": {"@list": ["a"]}}
        assert jsonld.compact(doc, ctx)["p"] == {"@list": ["a"]}

    def test_set_container(self):
        ctx = {"tags": {"@id": "http://ex/tags", "@container": "@set"}}
        doc = {"@id": "http://ex/s", "http://ex/tags": "a"}
        assert jsonld.compact(doc, ctx)["tags"] == ["a"]

    def test_language_map(self):
        ctx = {"label": {"@id": "http://ex/label", "@container": "@language"}}
        doc = {"@id": "http://ex/s", "http://ex/label": [
            {"@value": "cat", "@language": "en"},
            {"@value": "chat", "@language": "fr"}]}
        assert jsonld.compact(doc, ctx)["label"] == {
            "en": "cat", "fr": "chat"}

    def test_default_language(self):
        ctx = {"@language": "en", "label": "http://ex/label"}
        doc = {"@id": "http://ex/s", "http://ex/label": [
            {"@value": "cat", "@language": "en"},
            {"@value": "chat", "@language": "fr"}]}
        assert jsonld.compact(doc, ctx)["label"] == [
            "cat", {"@language": "fr", "@value": "chat"}]

    def test_reverse_property(self):
        ctx = {"children": {"@reverse": "http://ex/parent"}}
        doc = {"@id": "http://ex/mother", "@reverse": {
            "http://ex/parent": [{"@id": "http://ex/child"}]}}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx,
            "@id": "http://ex/mother",
            "children": {"@id": "http://ex/child"},
        }

    def test_nested_properties(self):
        ctx = {"@vocab": "http://ex/", "meta": "@nest",
               "size": {"@nest": "meta"}}
        doc = {"@id": "http://ex/s", "http://ex/size": 3}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx, "@id": "http://ex/s", "meta": {"size": 3}}

    def test_json_literals(self):
        ctx = {"j": {"@id": "http://ex/j", "@type": "@json"}}
        doc = {"http://ex/j": [
            {"@value": {"a": [1, None]}, "@type": "@json"},
            {"@value": [True, "x"], "@type": "@json"},
        ]}
        assert jsonld.compact(doc, ctx) == {
            "@context": ctx,
            "j": [{"a": [1, None]}, [True, "x"]],
        }

    def test_json_array_literal_round_trips(self):
        ctx = {"j": {"@id": "http://ex/j", "@type": "@json"}}
        doc = {"@context": ctx, "@id": "http://ex/s", "j": [1, 2]}
        assert jsonld.compact(jsonld.expand(doc), ctx) == doc


class TestCompactOptions:
    CTX = {"p": "http://ex/p"}
    DOC = {"@id": "http://ex/s", "http://ex/p": "v"}

    def test_dont_compact_arrays(self):
        assert jsonld.compact(self.DOC, self.CTX, {'compactArrays': False}) == {
            "@context": self.CTX,
            "@graph": [{"@id": "http://ex/s", "p": ["v"]}],
        }

    def test_graph(self):
        assert jsonld.compact(self.DOC, self.CTX, {'graph': True}) == {
            "@context": self.CTX,
            "@graph": [{"@id": "http://ex/s", "p": "v"}],
        }

    def test_several_nodes_use_graph(self):
        doc = [self.DOC, {"@id": "http://ex/t", "http://ex/p": "w"}]
        compacted = jsonld.compact(doc, self.CTX)
        assert compacted["@graph"] == [
            {"@id": "http://ex/s", "p": "v"},
            {"@id": "http://ex/t", "p": "w"},
        ]

    def test_graph_alias(self):
        ctx = {"p": "http://ex/p", "data": "@graph"}
        doc = [self.DOC, {"@id": "http://ex/t", "http://ex/p": "w"}]
        assert "data" in jsonld.compact(doc, ctx)

    def test_empty_result(self):
        assert jsonld.compact({}, self.CTX) == {"@context": self.CTX}
        assert jsonld.compact({}, {}) == {}

    def test_null_input(self):
        assert jsonld.compact(None, self.CTX) is None

    def test_remote_context(self, make_loader):
        loader = make_loader({'http://ex/ctx': {"@context": self.CTX}})
        compacted = jsonld.compact(
            self.DOC, 'http://ex/ctx', {'documentLoader': loader})
        assert compacted == {
            "@context": "http://ex/ctx", "@id": "http://ex/s", "p": "v"}


class TestCompactErrors:
    def test_null_context(self):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.compact(DOC, None)
        assert exc_info.value.code == 'invalid local context'

    def test_invalid_context(self):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.compact(DOC, {"@vocab": 5})
        error = exc_info.value
        assert error.type == 'jsonld.CompactError'
        assert error.root_cause.code == 'invalid vocab mapping'

    def test_invalid_input(self):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.compact({"@id": 5}, CONTEXT)
        error = exc_info.value
        assert error.type == 'jsonld.CompactError'
        assert error.cause.code == 'invalid @id value'

    def test_list_of_lists(self):
        ctx = {"list": {"@id": "http://ex/list", "@container": "@list"}}
        doc = {"@id": "http://ex/s", "http://ex/list": [
            {"@list": ["a"]}, {"@list": ["b"]}]}
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.compact(doc, ctx)
        assert exc_info.value.code == 'compaction to list of lists'
