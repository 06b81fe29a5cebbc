"""
Remote document loader using Requests.

.. module:: ldproc.documentloader.requests
  :synopsis: Remote document loader using Requests
"""
import logging

import requests

from ..errors import JsonLdError
from . import DEFAULT_HEADERS, remote_document, validate_url

__all__ = ['requests_document_loader']

log = logging.getLogger(__name__)


def requests_document_loader(secure=False, max_link_follows=2, **kwargs):
    """
    Create a Requests document loader.
    Can be used to setup extra Requests args such as verify, cert, timeout,
    or others.

    :param secure: require all requests to use HTTPS (default: False).
    :param max_link_follows: Maximum number of alternate link follows allowed.
    :param **kwargs: extra keyword args for Requests get() call.

    :return: the RemoteDocument loader function.
    """

    def loader(url, options=None, link_follow_count=0):
        """
        Retrieves JSON-LD at the given URL.

        :param url: the URL to retrieve.
        :param options: the loader options.
          [headers] the request headers to send.

        :return: the RemoteDocument.
        """
        options = options or {}
        try:
            validate_url(url, secure)
            headers = options.get('headers') or DEFAULT_HEADERS
            log.debug('GET %s', url)
            response = requests.get(url, headers=headers, **kwargs)
            response.raise_for_status()

            try:
                document = response.json()
            except ValueError:
                # document body is not parseable, continue to check link
                # headers
                document = None

            doc, alternate = remote_document(
                url, response.url, response.headers.get('content-type'),
                document, response.headers.get('link'))
            if alternate is not None:
                if link_follow_count >= max_link_follows:
                    raise requests.TooManyRedirects(
                        'Exceeded maximum link header redirects (%d)' %
                        max_link_follows)
                log.debug('Following alternate link to %s', alternate)
                return loader(
                    alternate, options=options,
                    link_follow_count=link_follow_count + 1)
            return doc
        except JsonLdError:
            raise
        except Exception as cause:
            raise JsonLdError(
                'Could not retrieve a JSON-LD document from the URL.',
                'jsonld.LoadDocumentError', {'url': url},
                code='loading document failed', cause=cause)

    return loader
