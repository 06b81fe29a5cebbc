"""
Remote document loader using aiohttp.

.. module:: ldproc.documentloader.aiohttp
  :synopsis: Remote document loader using aiohttp
"""

import asyncio
import logging
import threading

from ..errors import JsonLdError
from . import DEFAULT_HEADERS, remote_document, validate_url

__all__ = ['aiohttp_document_loader']

log = logging.getLogger(__name__)

# loop thread serving callers that already run inside an event loop
_background_loop = None
_background_thread = None
_background_lock = threading.Lock()


def _ensure_background_loop():
    """Returns the shared loop thread's event loop, starting it once."""
    global _background_loop, _background_thread
    with _background_lock:
        if _background_loop is None:
            _background_loop = asyncio.new_event_loop()

            def run_loop(loop):
                asyncio.set_event_loop(loop)
                loop.run_forever()

            _background_thread = threading.Thread(
                target=run_loop, args=(_background_loop,), daemon=True)
            _background_thread.start()
    return _background_loop


def aiohttp_document_loader(secure=False, max_link_follows=2, **kwargs):
    """
    Creates a document loader that fetches with an aiohttp client session.

    :param secure: only accept https URLs.
    :param max_link_follows: how many rel="alternate" JSON-LD links to follow.
    :param **kwargs: passed through to ``ClientSession.get()``.

    :return: a ``loader(url, options)`` callable.
    """
    import aiohttp

    async def async_loader(url, headers):
        async with aiohttp.ClientSession() as session:
            for _ in range(max_link_follows + 1):
                validate_url(url, secure)
                log.debug('GET %s', url)
                async with session.get(
                        url, headers=headers, **kwargs) as response:
                    response.raise_for_status()
                    # parse regardless of content type, a Link header may
                    # still point at the JSON-LD version
                    try:
                        document = await response.json(content_type=None)
                    except ValueError:
                        document = None
                    doc, alternate = remote_document(
                        url, response.url.human_repr(),
                        response.headers.get('content-type'), document,
                        response.headers.get('link'))
                if alternate is None:
                    return doc
                log.debug('Following alternate link to %s', alternate)
                url = alternate
        raise JsonLdError(
            'Exceeded maximum link header redirects (%d).' %
            max_link_follows,
            'jsonld.LoadDocumentError', {'url': url},
            code='loading document failed')

    def loader(url, options=None):
        """
        Loads a remote document, blocking until it arrives.

        :param url: the absolute URL of the document.
        :param options: the loader options.
          [headers] the request headers to send.

        :return: the RemoteDocument.
        """
        options = options or {}
        headers = options.get('headers') or DEFAULT_HEADERS

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        try:
            if running_loop is None or not running_loop.is_running():
                return asyncio.run(async_loader(url, headers))

            # asyncio.run() cannot nest inside a running loop
            loop = _ensure_background_loop()
            future = asyncio.run_coroutine_threadsafe(
                async_loader(url, headers), loop)
            return future.result()
        except JsonLdError:
            raise
        except Exception as cause:
            raise JsonLdError(
                'Dereferencing a URL did not result in a valid JSON-LD '
                'object.',
                'jsonld.LoadDocumentError', {'url': url},
                code='loading document failed', cause=cause)

    return loader
