import pytest

from ldproc.iri import (
    is_absolute_iri, parse_iri, remove_dot_segments, resolve, unresolve)

BASE = 'http://a/b/c/d;p?q'


class TestResolve:
    # reference resolution examples from RFC 3986 section 5.4
    @pytest.mark.parametrize('iri,expected', [
        ('g:h', 'g:h'),
        ('g', 'http://a/b/c/g'),
        ('./g', 'http://a/b/c/g'),
        ('g/', 'http://a/b/c/g/'),
        ('/g', 'http://a/g'),
        ('//g', 'http://g'),
        ('?y', 'http://a/b/c/d;p?y'),
        ('g?y', 'http://a/b/c/g?y'),
        ('#s', 'http://a/b/c/d;p?q#s'),
        ('g#s', 'http://a/b/c/g#s'),
        (';x', 'http://a/b/c/;x'),
        ('', 'http://a/b/c/d;p?q'),
        ('.', 'http://a/b/c/'),
        ('./', 'http://a/b/c/'),
        ('..', 'http://a/b/'),
        ('../g', 'http://a/b/g'),
        ('../..', 'http://a/'),
        ('../../g', 'http://a/g'),
        ('../../../g', 'http://a/g'),
        ('/./g', 'http://a/g'),
        ('g.', 'http://a/b/c/g.'),
        ('g/../h', 'http://a/b/c/h'),
    ])
    def test_rfc3986_examples(self, iri, expected):
        assert resolve(BASE, iri) == expected

    def test_no_base_keeps_reference(self):
        assert resolve(None, 'abc') == 'abc'
        assert resolve('', 'http://example.org/') == 'http://example.org/'

    def test_absolute_iri_removes_dots(self):
        assert resolve('http://base.org/', 'http://abc/../../') == 'http://abc/'

    def test_base_without_path(self):
        assert resolve('http://base.org', 'abc') == 'http://base.org/abc'


class TestUnresolve:
    @pytest.mark.parametrize('iri,expected', [
        ('http://a/b/c/g', 'g'),
        ('http://a/b/g', '../g'),
        ('http://a/b/c/d;p?q#frag', '#frag'),
        ('http://a/b/c/d;p?y', '?y'),
        ('http://other/b/c/g', 'http://other/b/c/g'),
        ('https://a/b/c/g', 'https://a/b/c/g'),
    ])
    def test_relative_references(self, iri, expected):
        assert unresolve(BASE, iri) == expected

    def test_default_port_is_ignored(self):
        assert unresolve('http://a:80/b/c', 'http://a/b/d') == 'd'

    def test_scheme_like_segment_is_protected(self):
        assert unresolve('http://a/b/c', 'http://a/b/x:y') == './x:y'

    @pytest.mark.parametrize('iri', [
        'http://a/b/c/g', 'http://a/g', 'http://a/b/c/d;p?y',
        'http://a/b/c/d;p?q#frag'])
    def test_resolves_back(self, iri):
        assert resolve(BASE, unresolve(BASE, iri)) == iri

    def test_no_base(self):
        assert unresolve(None, 'http://a/b') == 'http://a/b'


class TestHelpers:
    def test_remove_dot_segments(self):
        assert remove_dot_segments('/a/b/c/./../../g') == '/a/g'
        assert remove_dot_segments('mid/content=5/../6') == 'mid/6'

    def test_parse_iri(self):
        parsed = parse_iri('http://a/b?c#d')
        assert parsed.scheme == 'http'
        assert parsed.authority == 'a'
        assert parsed.path == '/b'
        assert parsed.query == 'c'
        assert parsed.fragment == 'd'

    def test_is_absolute_iri(self):
        assert is_absolute_iri('http://a')
        assert is_absolute_iri('urn:x')
        assert not is_absolute_iri('a/b')
        assert not is_absolute_iri(None)
