"""
A least recently used cache in front of any document loader.

.. module:: ldproc.documentloader.cache
  :synopsis: Caching document loader wrapper
"""

import copy
import logging
import threading
from collections import OrderedDict

__all__ = ['DocumentCache']

log = logging.getLogger(__name__)


class DocumentCache(object):
    """
    Wraps a document loader, keeping the last ``size`` RemoteDocuments by
    URL. Callers always receive a copy, so mutating a loaded document never
    changes what the cache returns next.
    """

    def __init__(self, loader, size=100):
        self.loader = loader
        self.size = size
        self.cache = OrderedDict()
        self._lock = threading.Lock()

    def __call__(self, url, options=None):
        with self._lock:
            doc = self.cache.get(url)
            if doc is not None:
                self.cache.move_to_end(url)
                log.debug('Document cache hit for %s', url)
                return copy.deepcopy(doc)

        doc = self.loader(url, options or {})

        with self._lock:
            self.cache[url] = copy.deepcopy(doc)
            self.cache.move_to_end(url)
            while len(self.cache) > self.size:
                self.cache.popitem(last=False)
        return doc

    def __contains__(self, url):
        return url in self.cache

    def __len__(self):
        return len(self.cache)

    def clear(self):
        with self._lock:
            self.cache.clear()
