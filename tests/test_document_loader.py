"""
Tests for document loaders: Accept header content negotiation, Link headers
and the document cache.

When a URL returns something other than JSON-LD (e.g. text/html) the HTTP
loaders follow a Link header with rel="alternate" and
type="application/ld+json" to get the actual JSON-LD. Example:
https://schema.org responds with text/html and provides the JSON-LD context
via Link: </docs/jsonldcontext.jsonld>; rel="alternate"; type="application/ld+json"
"""

import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from ldproc import jsonld
from ldproc.documentloader import (
    DEFAULT_HEADERS, LINK_HEADER_REL, parse_link_header, remote_document,
    validate_url)
from ldproc.documentloader.cache import DocumentCache
from ldproc.errors import JsonLdError


class FakeResponse(object):
    def __init__(self, url, body, content_type='application/ld+json',
                 link=None, status=200):
        self.url = url
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.status_code = status
        self.headers = CaseInsensitiveDict({'Content-Type': content_type})
        if link is not None:
            self.headers['Link'] = link

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError('%d error' % self.status_code)


@pytest.fixture
def responses(monkeypatch):
    """
    Serves FakeResponses by URL through ``requests.get``; every request is
    recorded in ``responses.calls``.
    """
    class Responses(dict):
        pass

    served = Responses()
    served.calls = []

    def get(url, headers=None, **kwargs):
        served.calls.append((url, headers, kwargs))
        if url not in served:
            return FakeResponse(url, 'not found', 'text/plain', status=404)
        return served[url]

    monkeypatch.setattr(requests, 'get', get)
    return served


class TestRequestsLoader:
    def test_loads_json_ld(self, responses):
        responses['http://ex/doc'] = FakeResponse(
            'http://ex/doc', {"@id": "http://ex/s"},
            'application/ld+json; charset=utf-8')
        doc = jsonld.requests_document_loader()('http://ex/doc')
        assert doc == {
            'contentType': 'application/ld+json',
            'contextUrl': None,
            'documentUrl': 'http://ex/doc',
            'document': {"@id": "http://ex/s"},
        }
        assert responses.calls == [('http://ex/doc', DEFAULT_HEADERS, {})]

    def test_request_options(self, responses):
        responses['http://ex/doc'] = FakeResponse('http://ex/doc', {})
        loader = jsonld.requests_document_loader(timeout=5)
        loader('http://ex/doc', {'headers': {'Accept': 'application/json'}})
        assert responses.calls == [
            ('http://ex/doc', {'Accept': 'application/json'}, {'timeout': 5})]

    def test_redirect_sets_document_url(self, responses):
        responses['http://ex/old'] = FakeResponse('http://ex/new', {})
        doc = jsonld.requests_document_loader()('http://ex/old')
        assert doc['documentUrl'] == 'http://ex/new'

    def test_context_link_header(self, responses):
        responses['http://ex/data/doc'] = FakeResponse(
            'http://ex/data/doc', {"name": "Ada"}, 'application/json',
            link='<context.jsonld>; rel="%s"' % LINK_HEADER_REL)
        doc = jsonld.requests_document_loader()('http://ex/data/doc')
        assert doc['contextUrl'] == 'http://ex/data/context.jsonld'

    def test_context_link_header_ignored_for_json_ld(self, responses):
        responses['http://ex/doc'] = FakeResponse(
            'http://ex/doc', {}, 'application/ld+json',
            link='<context.jsonld>; rel="%s"' % LINK_HEADER_REL)
        doc = jsonld.requests_document_loader()('http://ex/doc')
        assert doc['contextUrl'] is None

    def test_multiple_context_link_headers(self, responses):
        responses['http://ex/doc'] = FakeResponse(
            'http://ex/doc', {}, 'application/json',
            link='<a.jsonld>; rel="{0}", <b.jsonld>; rel="{0}"'.format(
                LINK_HEADER_REL))
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.requests_document_loader()('http://ex/doc')
        assert exc_info.value.code == 'multiple context link headers'

    def test_alternate_link_is_followed(self, responses):
        responses['http://ex/page'] = FakeResponse(
            'http://ex/page', '<html></html>', 'text/html',
            link='</docs/ctx.jsonld>; rel="alternate"; '
                 'type="application/ld+json"')
        responses['http://ex/docs/ctx.jsonld'] = FakeResponse(
            'http://ex/docs/ctx.jsonld', {"@context": {}})
        doc = jsonld.requests_document_loader()('http://ex/page')
        assert doc['documentUrl'] == 'http://ex/docs/ctx.jsonld'
        assert doc['document'] == {"@context": {}}

    def test_alternate_link_follows_are_limited(self, responses):
        responses['http://ex/page'] = FakeResponse(
            'http://ex/page', '<html></html>', 'text/html',
            link='<http://ex/page>; rel="alternate"; '
                 'type="application/ld+json"')
        loader = jsonld.requests_document_loader(max_link_follows=1)
        with pytest.raises(JsonLdError) as exc_info:
            loader('http://ex/page')
        assert isinstance(exc_info.value.cause, requests.TooManyRedirects)
        assert len(responses.calls) == 2

    def test_http_error(self, responses):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.requests_document_loader()('http://ex/missing')
        error = exc_info.value
        assert error.code == 'loading document failed'
        assert error.details == {'url': 'http://ex/missing'}
        assert isinstance(error.cause, requests.HTTPError)

    def test_unsupported_scheme(self, responses):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.requests_document_loader()('file:///etc/passwd')
        assert exc_info.value.type == 'jsonld.InvalidUrl'
        assert responses.calls == []

    def test_secure_mode(self, responses):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.requests_document_loader(secure=True)('http://ex/doc')
        assert exc_info.value.type == 'jsonld.InvalidUrl'

    def test_expand_with_remote_context(self, responses):
        responses['http://ex/doc'] = FakeResponse(
            'http://ex/doc', {"@context": "http://ex/ctx", "name": "Ada"})
        responses['http://ex/ctx'] = FakeResponse(
            'http://ex/ctx', {"@context": {"name": "http://schema.org/name"}})
        options = {'documentLoader': jsonld.requests_document_loader()}
        assert jsonld.expand('http://ex/doc', options) == [
            {"http://schema.org/name": [{"@value": "Ada"}]}]


class TestLinkHeader:
    def test_context(self):
        header = (
            '<http://json-ld.org/contexts/person.jsonld>; '
            'rel="http://www.w3.org/ns/json-ld#context"; '
            'type="application/ld+json"')
        assert parse_link_header(header) == {
            LINK_HEADER_REL: {
                'target': 'http://json-ld.org/contexts/person.jsonld',
                'rel': LINK_HEADER_REL,
                'type': 'application/ld+json',
            }
        }

    def test_repeated_rel(self):
        parsed = parse_link_header(
            '<a>; rel="alternate", <b>; rel="alternate", <c>; rel=next')
        assert [link['target'] for link in parsed['alternate']] == ['a', 'b']
        assert parsed['next'] == {'target': 'c', 'rel': 'next'}

    def test_comma_in_quotes(self):
        parsed = parse_link_header('<a>; rel="x"; title="one, two"')
        assert parsed['x']['title'] == 'one, two'

    def test_empty(self):
        assert parse_link_header('') == {}

    def test_exported_from_jsonld(self):
        assert jsonld.parse_link_header is parse_link_header


class TestHelpers:
    @pytest.mark.parametrize('url', [
        'http://example.org/doc', 'https://example.org:8443/doc?x=1'])
    def test_valid_url(self, url):
        validate_url(url)

    @pytest.mark.parametrize('url', [
        'file:///etc/passwd', 'example.org/doc', 'http://exa mple.org/'])
    def test_invalid_url(self, url):
        with pytest.raises(JsonLdError) as exc_info:
            validate_url(url)
        assert exc_info.value.code == 'loading document failed'

    def test_remote_document(self):
        doc, alternate = remote_document(
            'http://ex/doc', 'http://ex/doc', None, None, None)
        assert alternate is None
        assert doc == {
            'contentType': 'application/octet-stream',
            'contextUrl': None,
            'documentUrl': 'http://ex/doc',
            'document': None,
        }


class TestLoadDocument:
    def test_loader_failure_is_wrapped(self, make_loader):
        with pytest.raises(JsonLdError) as exc_info:
            jsonld.load_document(
                'http://ex/missing', {'documentLoader': make_loader({})})
        error = exc_info.value
        assert error.code == 'loading document failed'
        assert isinstance(error.cause, LookupError)

    def test_null_document(self):
        def loader(url, options=None):
            return {'documentUrl': url, 'document': None}

        with pytest.raises(JsonLdError) as exc_info:
            jsonld.load_document('http://ex/doc', {'documentLoader': loader})
        assert exc_info.value.type == 'jsonld.NullRemoteDocument'

    def test_string_document_is_parsed(self):
        def loader(url, options=None):
            return {'document': '{"@id": "http://ex/s"}'}

        doc = jsonld.load_document('http://ex/doc', {'documentLoader': loader})
        assert doc == {
            'contentType': None,
            'contextUrl': None,
            'documentUrl': 'http://ex/doc',
            'document': {"@id": "http://ex/s"},
        }

    def test_invalid_json(self):
        def loader(url, options=None):
            return {'document': '{not json'}

        with pytest.raises(JsonLdError) as exc_info:
            jsonld.load_document('http://ex/doc', {'documentLoader': loader})
        assert isinstance(exc_info.value.cause, ValueError)

    def test_default_loader(self, make_loader):
        previous = jsonld.get_document_loader()
        loader = make_loader({'http://ex/doc': {"http://ex/p": "v"}})
        jsonld.set_document_loader(loader)
        try:
            assert jsonld.get_document_loader() is loader
            assert jsonld.expand('http://ex/doc') == [
                {"http://ex/p": [{"@value": "v"}]}]
        finally:
            jsonld.set_document_loader(previous)


class TestDocumentCache:
    def test_hits_do_not_reload(self, make_loader):
        calls = []
        cache = DocumentCache(make_loader({'http://ex/a': {"a": 1}}, calls))
        assert cache('http://ex/a')['document'] == {"a": 1}
        assert cache('http://ex/a')['document'] == {"a": 1}
        assert calls == ['http://ex/a']
        assert 'http://ex/a' in cache

    def test_returns_copies(self, make_loader):
        cache = DocumentCache(make_loader({'http://ex/a': {"a": 1}}))
        cache('http://ex/a')['document']['a'] = 2
        assert cache('http://ex/a')['document'] == {"a": 1}

    def test_least_recently_used_is_evicted(self, make_loader):
        calls = []
        documents = {'http://ex/%s' % n: {} for n in 'abc'}
        cache = DocumentCache(make_loader(documents, calls), size=2)
        cache('http://ex/a')
        cache('http://ex/b')
        cache('http://ex/a')
        cache('http://ex/c')
        assert len(cache) == 2
        assert 'http://ex/a' in cache
        assert 'http://ex/b' not in cache
        assert calls == ['http://ex/a', 'http://ex/b', 'http://ex/c']

    def test_failures_are_not_cached(self, make_loader):
        cache = DocumentCache(make_loader({}))
        with pytest.raises(LookupError):
            cache('http://ex/a')
        assert len(cache) == 0

    def test_clear(self, make_loader):
        cache = DocumentCache(make_loader({'http://ex/a': {}}))
        cache('http://ex/a')
        cache.clear()
        assert len(cache) == 0

    def test_as_document_loader(self, make_loader):
        calls = []
        loader = DocumentCache(make_loader({
            'http://ex/ctx': {"@context": {"p": "http://ex/p"}}}, calls))
        doc = {"@context": "http://ex/ctx", "p": "v"}
        for _ in range(2):
            assert jsonld.expand(doc, {'documentLoader': loader}) == [
                {"http://ex/p": [{"@value": "v"}]}]
        assert calls == ['http://ex/ctx']


@pytest.mark.network
def test_activitystreams_context_loads_as_json():
    """
    The ActivityStreams context URL should return JSON-LD, not the HTML spec.

    This test requires network access and may be slow or flaky.
    """
    options = {'documentLoader': jsonld.requests_document_loader()}

    result = jsonld.load_document(
        'https://www.w3.org/ns/activitystreams', options)

    # Should be JSON-LD context, not HTML spec
    assert isinstance(result['document'], dict)
    assert '@context' in result['document']


# Minimal JSON-LD document that uses https://schema.org as context.
# schema.org serves text/html with Link rel="alternate" to the JSON-LD context.
_DOC_CONTEXT_VIA_LINK_ALTERNATE = {
    "@context": "https://schema.org",
    "@type": "Person",
    "name": "Jane Doe",
    "jobTitle": "Professor",
    "url": "http://www.janedoe.com",
}

_LOADERS = {
    "requests": jsonld.requests_document_loader,
    "aiohttp": jsonld.aiohttp_document_loader,
}


@pytest.fixture(params=["requests", "aiohttp"])
def document_loader(request):
    """Parametrizing fixture: yields requests and aiohttp document loaders."""
    return _LOADERS[request.param]()


@pytest.mark.network
def test_remote_context_via_link_alternate(document_loader):
    """
    When a context URL returns text/html with Link rel=alternate
    type=application/ld+json, the loader follows that link to load the
    context.
    """
    result = jsonld.expand(
        _DOC_CONTEXT_VIA_LINK_ALTERNATE,
        options={"documentLoader": document_loader})
    assert len(result) == 1
    item = result[0]
    assert item["http://schema.org/name"] == [{"@value": "Jane Doe"}]
    assert "http://schema.org/Person" in item["@type"]
