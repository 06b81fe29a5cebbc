import pytest

from ldproc import jsonld
from ldproc.errors import JsonLdError

SCHEMA = 'http://schema.org/'


def raise_this(value):
    raise ValueError(value)


class TestExpand:
    def test_term(self):
        doc = {"@context": {"name": "http://schema.org/name"}, "name": "Ada"}
        assert jsonld.expand(doc) == [
            {"http://schema.org/name": [{"@value": "Ada"}]}]

    def test_expansion_is_idempotent(self):
        doc = {
            "@context": {
                "@vocab": SCHEMA,
                "knows": {"@type": "@id"},
                "tags": {"@container": "@list"},
            },
            "@id": "http://ex/ada",
            "@type": "Person",
            "name": {"@value": "Ada", "@language": "EN"},
            "knows": "http://ex/charles",
            "tags": ["math", 1843],
        }
        expanded = jsonld.expand(doc)
        assert expanded == [{
            "@id": "http://ex/ada",
            "@type": [SCHEMA + "Person"],
            SCHEMA + "name": [{"@value": "Ada", "@language": "en"}],
            SCHEMA + "knows": [{"@id": "http://ex/charles"}],
            SCHEMA + "tags": [{"@list": [
                {"@value": "math"}, {"@value": 1843}]}],
        }]
        assert jsonld.expand(expanded) == expanded

    def test_output_keeps_input_key_order(self):
        doc = {
            "@context": {"@vocab": "http://ex/"},
            "b": 1,
            "a": 2,
            "@id": "http://ex/s",
        }
        assert list(jsonld.expand(doc)[0]) == [
            "http://ex/b", "http://ex/a", "@id"]

    def test_type_coercion_and_language(self):
        doc = {
            "@context": {
                "@language": "fr",
                "age": {"@id": "http://ex/age",
                        "@type": "http://www.w3.org/2001/XMLSchema#integer"},
                "label": "http://ex/label",
                "code": {"@id": "http://ex/code", "@language": None},
            },
            "@id": "http://ex/s",
            "age": "42",
            "label": "bonjour",
            "code": "x1",
        }
        assert jsonld.expand(doc) == [{
            "@id": "http://ex/s",
            "http://ex/age": [{
                "@value": "42",
                "@type": "http://www.w3.org/2001/XMLSchema#integer"}],
            "http://ex/label": [{"@value": "bonjour", "@language": "fr"}],
            "http://ex/code": [{"@value": "x1"}],
        }]

    def test_compact_iri_and_base(self):
        doc = {
            "@context": {"ex": "http://ex/", "@base": "http://base/doc/"},
            "@id": "item",
            "ex:p": {"@id": "../other"},
        }
        assert jsonld.expand(doc) == [{
            "@id": "http://base/doc/item",
            "http://ex/p": [{"@id": "http://base/other"}],
        }]

    def test_base_option(self):
        doc = {"@id": "a", "http://ex/p": "v"}
        assert jsonld.expand(doc, {"base": "http://base/"}) == [
            {"@id": "http://base/a", "http://ex/p": [{"@value": "v"}]}]

    def test_language_map_is_sorted(self):
        doc = {
            "@context": {
                "label": {"@id": "http://ex/label", "@container": "@language"}
            },
            "@id": "http://ex/s",
            "label": {"fr": "chat", "EN": "cat", "@none": "kat"},
        }
        assert jsonld.expand(doc)[0]["http://ex/label"] == [
            {"@value": "kat"},
            {"@value": "cat", "@language": "en"},
            {"@value": "chat", "@language": "fr"},
        ]

    def test_index_map(self):
        doc = {
            "@context": {
                "post": {"@id": "http://ex/post", "@container": "@index"}
            },
            "@id": "http://ex/blog",
            "post": {
                "en": {"@id": "http://ex/p1"},
                "de": [{"@id": "http://ex/p2"}],
            },
        }
        assert jsonld.expand(doc)[0]["http://ex/post"] == [
            {"@id": "http://ex/p2", "@index": "de"},
            {"@id": "http://ex/p1", "@index": "en"},
        ]

    def test_reverse_property(self):
        doc = {
            "@context": {
                "children": {"@reverse": "http://ex/parent"}
            },
            "@id": "http://ex/mother",
            "children": [{"@id": "http://ex/child"}],
        }
        assert jsonld.expand(doc) == [{
            "@id": "http://ex/mother",
            "@reverse": {
                "http://ex/parent": [{"@id": "http://ex/child"}]},
        }]

    def test_nested_properties(self):
        doc = {
            "@context": {"@vocab": "http://ex/", "meta": "@nest"},
            "@id": "http://ex/s",
            "meta": {"size": 3},
        }
        assert jsonld.expand(doc) == [
            {"@id": "http://ex/s", "http://ex/size": [{"@value": 3}]}]

    def test_type_scoped_context_does_not_propagate(self):
        doc = {
            "@context": {
                "@vocab": "http://ex/",
                "Person": {"@context": {"name": "http://schema.org/name"}},
            },
            "@type": "Person",
            "name": "Ada",
            "friend": {"name": "Bob"},
        }
        assert jsonld.expand(doc) == [{
            "@type": ["http://ex/Person"],
            "http://schema.org/name": [{"@value": "Ada"}],
            "http://ex/friend": [{"http://ex/name": [{"@value": "Bob"}]}],
        }]

    def test_property_scoped_context(self):
        doc = {
            "@context": {
                "@vocab": "http://ex/",
                "author": {"@context": {"name": "http://schema.org/name"}},
            },
            "name": "Book",
            "author": {"name": "Ada"},
        }
        assert jsonld.expand(doc) == [{
            "http://ex/name": [{"@value": "Book"}],
            "http://ex/author": [
                {"http://schema.org/name": [{"@value": "Ada"}]}],
        }]

    def test_graph_container(self):
        doc = {
            "@context": {
                "claim": {"@id": "http://ex/claim", "@container": "@graph"}
            },
            "@id": "http://ex/c",
            "claim": {"@id": "http://ex/s", "http://ex/p": "v"},
        }
        assert jsonld.expand(doc) == [{
            "@id": "http://ex/c",
            "http://ex/claim": [{"@graph": [
                {"@id": "http://ex/s", "http://ex/p": [{"@value": "v"}]}]}],
        }]

    def test_direction(self):
        doc = {
            "@context": {"@direction": "rtl", "@language": "ar"},
            "http://ex/title": "abc",
        }
        assert jsonld.expand(doc) == [{"http://ex/title": [
            {"@value": "abc", "@language": "ar", "@direction": "rtl"}]}]

    def test_json_literal_term(self):
        doc = {
            "@context": {"j": {"@id": "http://ex/j", "@type": "@json"}},
            "j": {"b": [1, {"c": None}], "a": True},
        }
        assert jsonld.expand(doc) == [{"http://ex/j": [{
            "@value": {"b": [1, {"c": None}], "a": True},
            "@type": "@json"}]}]

    def test_json_literal_array_is_one_value(self):
        doc = {
            "@context": {"j": {"@id": "http://ex/j", "@type": "@json"}},
            "j": [1, "two"],
        }
        assert jsonld.expand(doc) == [{"http://ex/j": [
            {"@value": [1, "two"], "@type": "@json"}]}]

    def test_json_value_object(self):
        doc = {"http://ex/j": {"@value": {"x": [1]}, "@type": "@json"}}
        assert jsonld.expand(doc) == [{"http://ex/j": [
            {"@value": {"x": [1]}, "@type": "@json"}]}]


class TestDropped:
    def test_free_floating_values_are_dropped(self):
        assert jsonld.expand({"@value": "x"}) == []
        assert jsonld.expand({"@id": "http://ex/a"}) == []
        assert jsonld.expand({"@graph": ["x", {"@id": "http://ex/a"}]}) == []

    def test_null_values_are_dropped(self):
        doc = {"@id": "http://ex/s", "http://ex/p": None,
               "http://ex/q": {"@value": None}, "http://ex/r": "x"}
        assert jsonld.expand(doc) == [
            {"@id": "http://ex/s", "http://ex/r": [{"@value": "x"}]}]

    def test_unknown_keyword_forms_are_dropped(self):
        doc = {"@id": "http://ex/s", "@foo": "x", "http://ex/p": "v"}
        assert jsonld.expand(doc) == [
            {"@id": "http://ex/s", "http://ex/p": [{"@value": "v"}]}]


class TestOnKeyDropped:
    CTX = {"foo": {"@id": "http://example.com/foo"}}
    DATA = {"fooo": "bar"}
    DATA2 = {
        "@id": "foo", "foo": "bar", "fooo": "baz",
        "http://example.com/other": "blah"}
    RESULT2 = [{
        "@id": "foo",
        "http://example.com/foo": [{"@value": "bar"}],
        "http://example.com/other": [{"@value": "blah"}],
    }]

    def test_silently_ignored(self):
        got = jsonld.expand(self.DATA, {'expandContext': self.CTX})
        assert got == []

    def test_silently_ignored_complex(self):
        got = jsonld.expand(self.DATA2, {'expandContext': self.CTX})
        assert got == self.RESULT2

    @pytest.mark.parametrize('data', [DATA, DATA2])
    def test_strict_fails(self, data):
        with pytest.raises(ValueError):
            jsonld.expand(
                data, {'expandContext': self.CTX}, on_key_dropped=raise_this)

    def test_dropped_keys(self):
        dropped_keys = set()
        got = jsonld.expand(
            self.DATA2, {'expandContext': {'@context': self.CTX}},
            on_key_dropped=dropped_keys.add)
        assert got == self.RESULT2
        assert dropped_keys == {"fooo"}

    def test_dropped_key_is_logged(self, caplog):
        with caplog.at_level('DEBUG', logger='ldproc.expansion'):
            jsonld.expand(self.DATA, {'expandContext': self.CTX})
        assert "'fooo'" in caplog.text


class TestExpandErrors:
    @pytest.mark.parametrize('doc,code', [
        ({"http://ex/p": {"@list": [{"@list": ["a"]}]}}, 'list of lists'),
        ({"@context": {"id": "@id"}, "@id": "http://ex/a",
          "id": "http://ex/b"}, 'colliding keywords'),
        ({"@id": "http://ex/s", "@type": 5}, 'invalid type value'),
        ({"http://ex/p": {"@value": "x", "http://ex/q": 1}},
         'invalid value object'),
        ({"http://ex/p": {"@value": 5, "@language": "en"}},
         'invalid language-tagged value'),
        ({"http://ex/p": {"@value": "x", "@type": "foo"}},
         'invalid typed value'),
        ({"@context": {"l": {"@id": "http://ex/l",
                             "@container": "@language"}},
          "l": {"en": 5}}, 'invalid language map value'),
        ({"http://ex/p": {"@value": "x", "@index": 1}},
         'invalid @index value'),
        ({"@id": 5}, 'invalid @id value'),
        ({"http://ex/p": {"@value": "x", "@direction": "up"}},
         'invalid base direction'),
        ({"http://ex/p": {"@value": {"a": 1}}}, 'invalid value object value'),
    ])
    def test_errors(self, doc, code):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.expand(doc)
        assert exc_info.value.code == code

    def test_error_details(self):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.expand({"@id": "http://ex/s", "@type": 5})
        error = exc_info.value
        assert error.type == 'jsonld.SyntaxError'
        assert error.details == {'value': 5}
        assert 'Code: invalid type value' in str(error)


class TestRemoteDocument:
    def test_expand_url(self, make_loader):
        loader = make_loader({
            'http://ex/doc': {
                "@context": {"name": "http://schema.org/name"},
                "@id": "item", "name": "Ada"},
        })
        expanded = jsonld.expand('http://ex/doc', {'documentLoader': loader})
        # the document URL is the default base
        assert expanded == [{
            "@id": "http://ex/item",
            "http://schema.org/name": [{"@value": "Ada"}]}]

    def test_link_header_context(self, make_loader):
        documents = {
            'http://ex/context': {
                "@context": {"name": "http://schema.org/name"}},
        }
        loader = make_loader(documents)

        def link_loader(url, options=None):
            if url == 'http://ex/doc':
                return {
                    'contentType': 'application/json',
                    'contextUrl': 'http://ex/context',
                    'documentUrl': url,
                    'document': {"name": "Ada"},
                }
            return loader(url, options)

        expanded = jsonld.expand(
            'http://ex/doc', {'documentLoader': link_loader})
        assert expanded == [{"http://schema.org/name": [{"@value": "Ada"}]}]

    def test_string_body_is_parsed(self):
        def loader(url, options=None):
            return {'documentUrl': url,
                    'document': '{"http://ex/p": "v", "@id": "http://ex/s"}'}

        assert jsonld.expand('http://ex/doc', {'documentLoader': loader}) == [
            {"http://ex/p": [{"@value": "v"}], "@id": "http://ex/s"}]
