"""
Document loaders and the pieces they share.

A document loader is a callable ``loader(url, options)`` returning a
RemoteDocument dict::

    {
      'contentType': 'application/ld+json',
      'contextUrl': None,
      'documentUrl': 'https://example.org/doc.jsonld',
      'document': {...}
    }

.. module:: ldproc.documentloader
  :synopsis: Remote document loading
"""

import re
import string
import urllib.parse as urllib_parse

from ..errors import JsonLdError
from ..iri import resolve

__all__ = [
    'LINK_HEADER_REL', 'DEFAULT_HEADERS', 'parse_link_header',
    'validate_url', 'remote_document']

# JSON-LD link header rel
LINK_HEADER_REL = 'http://www.w3.org/ns/json-ld#context'

DEFAULT_HEADERS = {'Accept': 'application/ld+json, application/json'}

_NETLOC_CHARS = set(string.ascii_letters + string.digits + '-.:')

_JSON_CONTENT_TYPE = re.compile(r'^application/(\w*\+)?json$')


def parse_link_header(header):
    """
    Parses a link header. The results will be key'd by the value of "rel".

    Link: <http://json-ld.org/contexts/person.jsonld>; \
      rel="http://www.w3.org/ns/json-ld#context"; type="application/ld+json"

    Parses as: {
      'http://www.w3.org/ns/json-ld#context': {
        target: http://json-ld.org/contexts/person.jsonld,
        type: 'application/ld+json'
      }
    }

    If there is more than one "rel" with the same IRI, then entries in the
    resulting map for that "rel" will be lists.

    :param header: the link header to parse.

    :return: the parsed result.
    """
    rval = {}
    # split on unbracketed/unquoted commas
    entries = re.findall(r'(?:<[^>]*?>|"[^"]*?"|[^,])+', header)
    if not entries:
        return rval
    r_link_header = r'\s*<([^>]*?)>\s*(?:;\s*(.*))?'
    r_params = r'(.*?)=(?:(?:"([^"]*?)")|([^"]*?))\s*(?:(?:;\s*)|$)'
    for entry in entries:
        match = re.search(r_link_header, entry)
        if not match:
            continue
        target, params = match.groups()
        result = {'target': target}
        for key, quoted, unquoted in re.findall(r_params, params or ''):
            result[key.strip()] = quoted or unquoted
        rel = result.get('rel', '')
        if isinstance(rval.get(rel), list):
            rval[rel].append(result)
        elif rel in rval:
            rval[rel] = [rval[rel], result]
        else:
            rval[rel] = result
    return rval


def validate_url(url, secure=False):
    """
    Checks that a URL can be dereferenced by the HTTP loaders.

    :param url: the URL to check.
    :param secure: True to only accept "https" URLs.
    """
    pieces = urllib_parse.urlparse(url)
    if (not all([pieces.scheme, pieces.netloc]) or
            pieces.scheme not in ['http', 'https'] or
            not set(pieces.netloc) <= _NETLOC_CHARS):
        raise JsonLdError(
            'URL could not be dereferenced; only "http" and "https" '
            'URLs are supported.',
            'jsonld.InvalidUrl', {'url': url},
            code='loading document failed')
    if secure and pieces.scheme != 'https':
        raise JsonLdError(
            'URL could not be dereferenced; secure mode enabled and '
            'the URL\'s scheme is not "https".',
            'jsonld.InvalidUrl', {'url': url},
            code='loading document failed')


def remote_document(url, document_url, content_type, document, link_header):
    """
    Builds the RemoteDocument for an HTTP response.

    :param url: the requested URL.
    :param document_url: the final URL after redirects.
    :param content_type: the response content type, if any.
    :param document: the parsed JSON body, None if it was not JSON.
    :param link_header: the response Link header, if any.

    :return: a tuple of the RemoteDocument and the URL of an alternate
      JSON-LD document to load instead, or None.
    """
    content_type = content_type or 'application/octet-stream'
    # drop parameters such as charset
    media_type = content_type.split(';')[0].strip()
    doc = {
        'contentType': media_type,
        'contextUrl': None,
        'documentUrl': document_url,
        'document': document
    }
    if not link_header:
        return doc, None

    links = parse_link_header(link_header)
    linked_context = links.get(LINK_HEADER_REL)
    # only 1 related link header permitted
    if linked_context and media_type != 'application/ld+json':
        if isinstance(linked_context, list):
            raise JsonLdError(
                'URL could not be dereferenced, it has more than one '
                'associated HTTP Link Header.',
                'jsonld.LoadDocumentError', {'url': url},
                code='multiple context link headers')
        doc['contextUrl'] = resolve(document_url, linked_context['target'])

    # if not JSON-LD, alternate may point there
    linked_alternate = links.get('alternate')
    if (isinstance(linked_alternate, dict) and
            linked_alternate.get('type') == 'application/ld+json' and
            not _JSON_CONTENT_TYPE.match(media_type)):
        return doc, resolve(url, linked_alternate['target'])
    return doc, None
