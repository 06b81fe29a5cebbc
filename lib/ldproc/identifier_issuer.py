"""
Blank node label issuing.

.. module:: ldproc.identifier_issuer
  :synopsis: Scoped blank node identifier generator
"""

import itertools


class IdentifierIssuer(object):
    """
    Issues ``<prefix><n>`` blank node labels for one top-level call.

    A label found in the source document is mapped to a fresh label the
    first time it is seen and to the same label afterwards. An issuer is
    never shared between calls, so numbering always restarts at zero.
    """

    def __init__(self, prefix='_:b'):
        self.prefix = prefix
        self.issued = {}
        self._counter = itertools.count()

    def get_id(self, old=None):
        """
        Gets the label issued for a source label.

        :param [old]: the source label; when None an unmapped label is issued.

        :return: the issued label.
        """
        if old is None:
            return self._next()
        id_ = self.issued.get(old)
        if id_ is None:
            id_ = self.issued[old] = self._next()
        return id_

    def relabel(self, id_):
        """Relabels a blank node identifier, returning any other id as is."""
        if id_.startswith('_:'):
            return self.get_id(id_)
        return id_

    def _next(self):
        return '%s%d' % (self.prefix, next(self._counter))
