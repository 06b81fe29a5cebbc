"""
IRI resolution helpers.

``resolve()`` implements reference resolution from RFC 3986 section 5.2 and
``unresolve()`` produces the shortest relative reference for an IRI against a
base, used when compacting ``@id`` values.

.. module:: ldproc.iri
  :synopsis: RFC 3986 IRI resolution and relativisation
"""

import re
from collections import namedtuple

__all__ = [
    'ParsedIri', 'parse_iri', 'unparse_iri', 'resolve', 'unresolve',
    'remove_dot_segments', 'is_absolute_iri', 'is_blank_node_id']

# regex from RFC 3986 appendix B
_IRI_PARTS = re.compile(
    r'^(?:([^:/?#]+):)?(?://([^/?#]*))?([^?#]*)(?:\?([^#]*))?(?:#(.*))?')

_SCHEME = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:')

_DEFAULT_PORTS = {'http': ':80', 'https': ':443'}

ParsedIri = namedtuple(
    'ParsedIri', ['scheme', 'authority', 'path', 'query', 'fragment'])


def is_absolute_iri(v) -> bool:
    """
    Returns True if the given value is an absolute IRI (has a scheme).

    :param v: the value to check.

    :return: True if the value is an absolute IRI, False if not.
    """
    return isinstance(v, str) and _SCHEME.match(v) is not None


def is_blank_node_id(v) -> bool:
    return isinstance(v, str) and v.startswith('_:')


def parse_iri(iri: str) -> ParsedIri:
    return ParsedIri(*_IRI_PARTS.match(iri).groups())


def unparse_iri(parsed) -> str:
    if isinstance(parsed, dict):
        parsed = ParsedIri(**parsed)
    elif not isinstance(parsed, ParsedIri):
        parsed = ParsedIri(*parsed)
    rval = ''
    if parsed.scheme:
        rval += parsed.scheme + ':'
    if parsed.authority is not None:
        rval += '//' + parsed.authority
    rval += parsed.path
    if parsed.query is not None:
        rval += '?' + parsed.query
    if parsed.fragment is not None:
        rval += '#' + parsed.fragment
    return rval


def remove_dot_segments(path: str) -> str:
    """
    Removes '.' and '..' segments from a path as described in RFC 3986
    section 5.2.4.

    :param path: the path to normalize.

    :return: the path without dot segments.
    """
    output = []
    while path:
        if path.startswith('../'):
            path = path[3:]
        elif path.startswith('./'):
            path = path[2:]
        elif path.startswith('/./'):
            path = path[2:]
        elif path == '/.':
            path = '/'
        elif path.startswith('/../'):
            path = path[3:]
            if output:
                output.pop()
        elif path == '/..':
            path = '/'
            if output:
                output.pop()
        elif path in ('.', '..'):
            path = ''
        else:
            # move the first segment, with its leading '/', to the output
            start = 1 if path.startswith('/') else 0
            end = path.find('/', start)
            if end == -1:
                end = len(path)
            output.append(path[:end])
            path = path[end:]
    return ''.join(output)


def _merge_paths(base, rel_path):
    if base.authority is not None and base.path == '':
        return '/' + rel_path
    return base.path[:base.path.rfind('/') + 1] + rel_path


def resolve(base, iri):
    """
    Resolves an IRI reference against a base IRI.

    :param base: the base IRI, None or '' to skip resolution.
    :param iri: the IRI reference.

    :return: the resolved IRI.
    """
    if not base:
        return iri

    rel = parse_iri(iri)
    # already an absolute IRI
    if rel.scheme is not None:
        return unparse_iri(rel._replace(
            path=remove_dot_segments(rel.path)))

    base = parse_iri(base)
    transform = {'scheme': base.scheme, 'fragment': rel.fragment}

    if rel.authority is not None:
        transform['authority'] = rel.authority
        transform['path'] = remove_dot_segments(rel.path)
        transform['query'] = rel.query
    else:
        transform['authority'] = base.authority
        if rel.path == '':
            transform['path'] = base.path
            transform['query'] = (
                rel.query if rel.query is not None else base.query)
        else:
            if rel.path.startswith('/'):
                transform['path'] = remove_dot_segments(rel.path)
            else:
                transform['path'] = remove_dot_segments(
                    _merge_paths(base, rel.path))
            transform['query'] = rel.query

    return unparse_iri(transform)


def _authority(parsed):
    authority = parsed.authority
    default = _DEFAULT_PORTS.get(parsed.scheme)
    if authority and default and authority.endswith(default):
        authority = authority[:-len(default)]
    return authority


def unresolve(base, iri):
    """
    Removes a base IRI from the given absolute IRI.

    :param base: the base IRI.
    :param iri: the absolute IRI.

    :return: the relative IRI if relative to base, otherwise the absolute IRI.
    """
    if not base:
        return iri

    base = parse_iri(base)
    rel = parse_iri(iri)

    # schemes and authorities don't match, don't alter IRI
    if not (base.scheme == rel.scheme and
            _authority(base) == _authority(rel)):
        return iri

    # same document
    if rel.path == base.path:
        if rel.query == base.query:
            if rel.fragment is not None:
                return '#' + rel.fragment
            if base.fragment is None:
                # keep a non-empty reference to the document itself
                segment = rel.path[rel.path.rfind('/') + 1:]
                return segment or './'
        elif rel.query is not None:
            return unparse_iri(
                (None, None, '', rel.query, rel.fragment))

    # remove path segments that match (do not remove last segment unless
    # there is a hash or query)
    base_segments = remove_dot_segments(base.path).split('/')
    iri_segments = remove_dot_segments(rel.path).split('/')
    last = 0 if (rel.fragment or rel.query) else 1
    while (len(base_segments) and len(iri_segments) > last and
            base_segments[0] == iri_segments[0]):
        base_segments.pop(0)
        iri_segments.pop(0)

    # use '../' for each non-matching base segment
    rval = ''
    if len(base_segments):
        # the last base segment is a file name, not a directory
        base_segments.pop()
        rval += '../' * len(base_segments)

    rval += '/'.join(iri_segments)

    # a leading segment with ':' would read as a scheme
    if not rval.startswith('../') and ':' in rval.split('/')[0]:
        rval = './' + rval

    return unparse_iri((None, None, rval, rel.query, rel.fragment)) or './'
