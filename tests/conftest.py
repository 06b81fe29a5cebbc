import copy

import pytest


def pytest_configure(config):
    # Register custom markers
    config.addinivalue_line(
        "markers", "network: marks tests as requiring network access (may be slow)"
    )


def _make_loader(documents, calls=None):
    def loader(url, options=None):
        if calls is not None:
            calls.append(url)
        if url not in documents:
            raise LookupError('no document at %s' % url)
        return {
            'contentType': 'application/ld+json',
            'contextUrl': None,
            'documentUrl': url,
            'document': copy.deepcopy(documents[url]),
        }
    return loader


@pytest.fixture
def make_loader():
    """
    Factory for in-memory document loaders: ``make_loader(documents,
    calls=None)`` serves the URL to document mapping and appends every
    requested URL to ``calls``.
    """
    return _make_loader
