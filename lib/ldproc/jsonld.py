"""
Python implementation of the JSON-LD API.

The module level functions create a :class:`JsonLdProcessor` per call; a
processor keeps no state between calls apart from its processor-specific
RDF parsers.

.. module:: ldproc.jsonld
  :synopsis: JSON-LD processing API
"""

import copy
import json
import logging

from . import node_map, nquads, rdf
from .__about__ import (__copyright__, __license__, __version__)
from .compaction import Compactor
from .context import MAX_CONTEXT_URLS, ContextProcessor
from .documentloader import LINK_HEADER_REL, parse_link_header
from .errors import JsonLdError
from .expansion import Expander
from .framing import Framer, remove_preserve
from .values import arrayify, is_array, is_object, is_string

__all__ = [
    '__copyright__', '__license__', '__version__',
    'compact', 'expand', 'flatten', 'frame', 'from_rdf', 'to_rdf',
    'process_context', 'parse_nquads', 'serialize_nquads',
    'set_document_loader', 'get_document_loader', 'load_document',
    'parse_link_header', 'requests_document_loader',
    'aiohttp_document_loader', 'register_rdf_parser',
    'unregister_rdf_parser', 'JsonLdProcessor', 'JsonLdError',
    'LINK_HEADER_REL', 'MAX_CONTEXT_URLS'
]

log = logging.getLogger(__name__)

parse_nquads = nquads.parse_nquads
serialize_nquads = nquads.serialize_nquads

_NQUADS_FORMATS = ('application/n-quads', 'application/nquads')


def compact(input_, ctx, options=None):
    """
    Expands a document and compacts it against a context.

    :param input_: a JSON value, or an IRI that the document loader
      dereferences.
    :param ctx: the context, either bare or wrapped in an object with an
      @context entry.
    :param [options]: per call settings, see :meth:`JsonLdProcessor.compact`.

    :return: the compacted document, carrying the context first.
    """
    return JsonLdProcessor().compact(input_, ctx, options)


def expand(input_, options=None, on_key_dropped=None):
    """
    Expands a document, removing its context.

    Keys that map to no IRI are dropped; pass ``on_key_dropped`` to see
    them, or raise from it to reject such documents.

    :param input_: a JSON value, or an IRI that the document loader
      dereferences.
    :param [options]: per call settings, see :meth:`JsonLdProcessor.expand`.
    :param [on_key_dropped]: callable receiving each dropped key.

    :return: the list of expanded top-level nodes.
    """
    return JsonLdProcessor().expand(input_, options, on_key_dropped)


def flatten(input_, ctx=None, options=None):
    """
    Collects every node of a document into one flat list of node objects.

    :param input_: a JSON value, or an IRI to dereference.
    :param ctx: when given, the flat list is compacted against it and put
      under a top-level @graph.
    :param [options]: per call settings, see
      :meth:`JsonLdProcessor.flatten`.

    :return: the expanded node list, or the compacted document.
    """
    return JsonLdProcessor().flatten(input_, ctx, options)


def frame(input_, frame, options=None):
    """
    Selects and shapes the nodes of a document with a frame.

    :param input_: a JSON value, or an IRI to dereference.
    :param frame: the frame object, or an IRI to dereference; its
      @context is used to compact the result.
    :param [options]: per call settings and frame flag defaults, see
      :meth:`JsonLdProcessor.frame`.

    :return: the framed document.
    """
    return JsonLdProcessor().frame(input_, frame, options)


def from_rdf(input_, options=None):
    """
    Builds an expanded document from an RDF dataset.

    :param input_: a list of :class:`ldproc.rdf.Quad`, or text that the
      parser registered for ``options['format']`` reads (N-Quads unless
      told otherwise).
    :param [options]: per call settings, see
      :meth:`JsonLdProcessor.from_rdf`.

    :return: the expanded document.
    """
    return JsonLdProcessor().from_rdf(input_, options)


def to_rdf(input_, options=None):
    """
    Builds the RDF dataset a document describes.

    :param input_: a JSON value, or an IRI to dereference.
    :param [options]: per call settings, see :meth:`JsonLdProcessor.to_rdf`.

    :return: a list of :class:`ldproc.rdf.Quad`, or N-Quads text when
      ``options['format']`` asks for it.
    """
    return JsonLdProcessor().to_rdf(input_, options)


def process_context(active_ctx, local_ctx, options=None):
    """
    Applies a local context on top of an active context.

    :param active_ctx: the context to start from; None starts from the
      initial context.
    :param local_ctx: a context object, IRI or list of them.
    :param [options]: ``base`` and ``documentLoader`` are honoured.

    :return: a new active context; ``active_ctx`` is left as it was.
    """
    return JsonLdProcessor().process_context(active_ctx, local_ctx, options)


def set_document_loader(load_document):
    """
    Replaces the process wide loader used when a call passes no
    ``documentLoader`` option.

    :param load_document(url, options): returns a RemoteDocument dict.
    """
    global _default_document_loader
    _default_document_loader = load_document


def get_document_loader():
    """Returns the process wide document loader."""
    return _default_document_loader


def load_document(url, options=None):
    """
    Dereferences a URL with the configured loader and checks the result.

    Failures of the loader that are not already :class:`JsonLdError` are
    wrapped as 'loading document failed'. A document delivered as text is
    parsed as JSON.

    :param url: the URL to dereference.
    :param [options]: ``documentLoader`` picks the loader, everything is
      handed on to it.

    :return: a RemoteDocument dict with ``contentType``, ``contextUrl``,
      ``documentUrl`` and ``document`` entries.
    """
    options = options or {}
    loader = options.get('documentLoader') or _default_document_loader
    log.debug('Loading remote document %s', url)
    try:
        remote_doc = loader(url, options)
    except JsonLdError:
        raise
    except Exception as cause:
        raise JsonLdError(
            'Could not retrieve a JSON-LD document from the URL.',
            'jsonld.LoadDocumentError', {'url': url},
            code='loading document failed', cause=cause)

    remote_doc = dict(remote_doc)
    remote_doc.setdefault('contentType', None)
    remote_doc.setdefault('contextUrl', None)
    remote_doc.setdefault('documentUrl', url)
    document = remote_doc.get('document')
    if document is None:
        raise JsonLdError(
            'No remote document found at the given URL.',
            'jsonld.NullRemoteDocument', {'url': url},
            code='loading document failed')
    if is_string(document):
        try:
            remote_doc['document'] = json.loads(document)
        except ValueError as cause:
            raise JsonLdError(
                'Could not parse JSON from URL.',
                'jsonld.LoadDocumentError', {'url': url},
                code='loading document failed', cause=cause)
    return remote_doc


def requests_document_loader(**kwargs):
    from .documentloader.requests import requests_document_loader

    return requests_document_loader(**kwargs)


def aiohttp_document_loader(**kwargs):
    from .documentloader.aiohttp import aiohttp_document_loader

    return aiohttp_document_loader(**kwargs)


def register_rdf_parser(content_type, parser):
    """
    Makes ``from_rdf`` accept text in another format.

    The parser is looked up by ``options['format']`` and applies to every
    processor that has no parsers of its own.

    :param content_type: the format name, usually a media type.
    :param parser(input): turns the text into a list of quads.
    """
    _rdf_parsers[content_type] = parser


def unregister_rdf_parser(content_type):
    """Forgets the global parser for a format, if any."""
    _rdf_parsers.pop(content_type, None)


_rdf_parsers = {}


class JsonLdProcessor(object):
    """
    Runs the JSON-LD algorithms with per call options.

    Every public method copies the options it is given before filling in
    defaults, so callers can reuse one options dict.
    """

    def __init__(self):
        # parsers used by from_rdf instead of the global ones, when set
        self.rdf_parsers = None

    def compact(self, input_, ctx, options):
        """
        Compacts a document against a context.

        The input is expanded first unless ``skipExpansion`` is set; an
        expansion failure is wrapped in a 'jsonld.CompactError'. A None
        context is rejected with 'invalid local context'.

        :param input_: a JSON value, or an IRI to dereference.
        :param ctx: the context to compact with.
        :param options: the options to use.
          [compactArrays] write single-element arrays as their element
            (default: True).
          [graph] always put the result under @graph (default: False).
          [skipExpansion] treat the input as already expanded
            (default: False).
          [base], [expandContext], [processingMode], [documentLoader] as
            for expand.

        :return: the compacted document.
        """
        if ctx is None:
            raise JsonLdError(
                'The compaction context must not be null.',
                'jsonld.CompactError', code='invalid local context')

        # nothing to compact
        if input_ is None:
            return None

        # set default options
        options = options.copy() if options else {}
        options.setdefault('base', input_ if is_string(input_) else '')
        options.setdefault('compactArrays', True)
        options.setdefault('graph', False)
        options.setdefault('skipExpansion', False)
        options.setdefault('documentLoader', _default_document_loader)
        options.setdefault('processingMode', 'json-ld-1.1')

        if options['skipExpansion']:
            expanded = input_
        else:
            # expand input
            try:
                expanded = self.expand(input_, options)
            except JsonLdError as cause:
                raise JsonLdError(
                    'Could not expand input before compaction.',
                    'jsonld.CompactError', cause=cause)

        compacted, _, _ = self._compact(expanded, ctx, options)
        return compacted

    def _compact(self, expanded, ctx, options):
        """
        Compacts expanded input and shapes the top-level output.

        :return: the compacted output, the active context and the Compactor
          used.
        """
        processor = ContextProcessor(options)

        # follow @context key
        if is_object(ctx) and '@context' in ctx:
            ctx = ctx['@context']

        # process context
        try:
            active_ctx = processor.process(
                processor.initial_context(), copy.deepcopy(ctx))
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not process context before compaction.',
                'jsonld.CompactError', cause=cause)

        # do compaction
        compactor = Compactor(processor, options)
        compacted = compactor.compact(active_ctx, None, expanded)

        if (options['compactArrays'] and not options['graph'] and
                is_array(compacted)):
            # simplify to a single item
            if len(compacted) == 1:
                compacted = compacted[0]
            # simplify to an empty object
            elif len(compacted) == 0:
                compacted = {}
        # always use an array if graph options is on
        elif options['graph']:
            compacted = arrayify(compacted)

        # build output context, without empty contexts
        ctx = [
            v for v in arrayify(copy.deepcopy(ctx))
            if not is_object(v) or len(v) > 0]

        # remove array if only one context
        has_context = len(ctx) > 0
        if len(ctx) == 1:
            ctx = ctx[0]

        # add context and/or @graph
        if is_array(compacted):
            # use '@graph' keyword
            kwgraph = compactor.compact_iri(active_ctx, '@graph')
            graph = compacted
            compacted = {}
            if has_context:
                compacted['@context'] = ctx
            compacted[kwgraph] = graph
        elif is_object(compacted) and has_context:
            # reorder keys so @context is first
            graph = compacted
            compacted = {'@context': ctx}
            compacted.update(graph)

        return compacted, active_ctx, compactor

    def expand(self, input_, options, on_key_dropped=None):
        """
        Expands a document, dereferencing it first when given an IRI.

        A context named by the HTTP Link header of the loaded document is
        applied after ``expandContext``.

        :param input_: a JSON value, or an IRI to dereference.
        :param options: the options to use.
          [base] the base IRI (default: the document URL, or '').
          [expandContext] a context applied before the document's own.
          [processingMode] 'json-ld-1.0' or 'json-ld-1.1'
            (default: 'json-ld-1.1').
          [isFrame] accept framing keywords (default: False).
          [keepFreeFloatingNodes] keep top-level nodes that have no
            properties (default: False).
          [documentLoader(url, options)] the loader for remote documents
            and contexts.
        :param on_key_dropped: callable receiving each key that maps to no
          IRI; raising from it aborts expansion.

        :return: the list of expanded top-level nodes.
        """
        # set default options
        options = options.copy() if options else {}
        options.setdefault('isFrame', False)
        options.setdefault('keepFreeFloatingNodes', False)
        options.setdefault('documentLoader', _default_document_loader)
        options.setdefault('processingMode', 'json-ld-1.1')

        # if input is a string, attempt to dereference remote document
        remote_doc = self._remote_document(input_, options)

        # set default base
        options.setdefault('base', remote_doc['documentUrl'] or '')

        processor = ContextProcessor(options)
        active_ctx = processor.initial_context()

        # process optional expandContext
        if 'expandContext' in options:
            expand_context = copy.deepcopy(options['expandContext'])
            if is_object(expand_context) and '@context' in expand_context:
                expand_context = expand_context['@context']
            active_ctx = processor.process(active_ctx, expand_context)

        # process remote context from HTTP Link Header
        if remote_doc['contextUrl'] is not None:
            active_ctx = processor.process(
                active_ctx, remote_doc['contextUrl'])

        # do expansion
        expander = Expander(processor, options, on_key_dropped)
        return expander.expand(
            active_ctx, copy.deepcopy(remote_doc['document']))

    def flatten(self, input_, ctx, options):
        """
        Expands the input and merges its graphs into one node list.

        :param input_: a JSON value, or an IRI to dereference.
        :param ctx: a context to compact the node list with, or None to
          return it expanded. Compacted output always has a @graph.
        :param options: ``base``, ``expandContext`` and ``documentLoader``,
          handed on to expansion and compaction. Errors of either stage are
          wrapped in a 'jsonld.FlattenError'.

        :return: the flattened document.
        """
        options = options.copy() if options else {}
        options.setdefault('base', input_ if is_string(input_) else '')
        options.setdefault('documentLoader', _default_document_loader)

        try:
            # expand input
            expanded = self.expand(input_, options)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not expand input before flattening.',
                'jsonld.FlattenError', cause=cause)

        # do flattening
        flattened = node_map.flatten(expanded)

        if ctx is None:
            return flattened

        # compact result (force @graph option to true, skip expansion)
        options['graph'] = True
        options['skipExpansion'] = True
        try:
            compacted = self.compact(flattened, ctx, options)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not compact flattened output.',
                'jsonld.FlattenError', cause=cause)

        return compacted

    def frame(self, input_, frame, options):
        """
        Frames the input and compacts the result with the frame's context.

        Input and frame are both expanded; the frame in frame mode. A single
        top-level match is lifted next to @context unless ``graph`` is set.
        Failures of each stage are wrapped in a 'jsonld.FrameError'.

        :param input_: a JSON value, or an IRI to dereference.
        :param frame: a frame object, or an IRI to dereference.
        :param options: the options to use.
          [embed] default for @embed: '@always' or '@never'
            (default: '@always').
          [explicit] default for @explicit (default: False).
          [requireAll] default for @requireAll (default: True).
          [omitDefault] default for @omitDefault (default: False).
          [pruneBlankNodeIdentifiers] drop blank node ids referenced only
            once (default: False).
          [graph] always keep matches under @graph (default: False).
          [compactArrays], [base], [expandContext], [documentLoader] as
            for compact.

        :return: the framed document.
        """
        # set default options
        options = options.copy() if options else {}
        options.setdefault('base', input_ if is_string(input_) else '')
        options.setdefault('compactArrays', True)
        options.setdefault('embed', '@always')
        options.setdefault('explicit', False)
        options.setdefault('requireAll', True)
        options.setdefault('omitDefault', False)
        options.setdefault('pruneBlankNodeIdentifiers', False)
        options.setdefault('graph', False)
        options.setdefault('documentLoader', _default_document_loader)
        options.setdefault('processingMode', 'json-ld-1.1')

        # if frame is a string, attempt to dereference remote document
        remote_frame = self._remote_document(frame, options)
        frame = remote_frame['document']
        if not is_object(frame):
            raise JsonLdError(
                'Invalid JSON-LD syntax; a JSON-LD frame must be a single '
                'object.', 'jsonld.SyntaxError', {'frame': frame},
                code='invalid frame')

        # preserve frame context
        ctx = frame.get('@context', {})
        if remote_frame['contextUrl'] is not None:
            ctx = arrayify(ctx) + [remote_frame['contextUrl']]
            frame = dict(frame, **{'@context': ctx})

        try:
            # expand input
            expanded = self.expand(input_, options)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not expand input before framing.',
                'jsonld.FrameError', cause=cause)

        try:
            # expand frame
            opts = options.copy()
            opts['isFrame'] = True
            opts['keepFreeFloatingNodes'] = True
            expanded_frame = self.expand(frame, opts)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not expand frame before framing.',
                'jsonld.FrameError', cause=cause)

        # do framing
        framed = Framer(options).frame(expanded, expanded_frame)

        try:
            # compact result (force @graph option to True, skip expansion)
            opts = options.copy()
            opts['graph'] = True
            opts['skipExpansion'] = True
            compacted, active_ctx, compactor = self._compact(
                framed, ctx, opts)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not compact framed output.',
                'jsonld.FrameError', cause=cause)

        # get graph alias
        graph = compactor.compact_iri(active_ctx, '@graph')
        # remove @preserve from results
        results = remove_preserve(
            compactor, active_ctx, compacted.pop(graph))

        # lift a single result to the top level
        if not options['graph'] and len(results) == 1:
            compacted.update(results[0])
        else:
            compacted[graph] = results
        return compacted

    def from_rdf(self, dataset, options):
        """
        Converts quads, or text in a registered format, to expanded JSON-LD.

        :param dataset: a list of quads, or text to parse. Text without a
          ``format`` option is read as N-Quads.
        :param options: the options to use.
          [format] the name of the registered parser for text input; an
            unknown name raises 'jsonld.UnknownFormat'.
          [useRdfType] keep rdf:type as a plain property (default: False).
          [useNativeTypes] turn xsd:boolean, xsd:integer and xsd:double
            literals into JSON values (default: False).

        :return: the expanded document.
        """
        # set default options
        options = options.copy() if options else {}
        options.setdefault('useRdfType', False)
        options.setdefault('useNativeTypes', False)

        if ('format' not in options) and is_string(dataset):
            options['format'] = 'application/n-quads'

        # handle special format
        if options.get('format'):
            # supported formats (processor-specific and global)
            parsers = (
                self.rdf_parsers if self.rdf_parsers is not None
                else _rdf_parsers)
            if options['format'] not in parsers:
                raise JsonLdError(
                    'Unknown input format.',
                    'jsonld.UnknownFormat', {'format': options['format']})
            dataset = parsers[options['format']](dataset)

        # convert from RDF
        return rdf.from_rdf(dataset, options)

    def to_rdf(self, input_, options):
        """
        Expands the input and converts it to quads.

        An unknown ``format`` is rejected before any work is done. Expansion
        errors are wrapped in a 'jsonld.RdfError'.

        :param input_: a JSON value, or an IRI to dereference.
        :param options: the options to use.
          [format] 'application/n-quads' to get N-Quads text back instead
            of a list of quads.
          [produceGeneralizedRdf] keep quads with blank node predicates
            (default: False).
          [graph] put the default graph's quads into a named graph with a
            fresh blank node name (default: False).
          [base], [expandContext], [documentLoader] as for expand.

        :return: the list of quads, or their N-Quads serialization.
        """
        # set default options
        options = options.copy() if options else {}
        options.setdefault('base', input_ if is_string(input_) else '')
        options.setdefault('produceGeneralizedRdf', False)
        options.setdefault('graph', False)
        options.setdefault('documentLoader', _default_document_loader)

        # check the output format before doing any work
        output_format = options.get('format')
        if output_format and output_format not in _NQUADS_FORMATS:
            raise JsonLdError(
                'Unknown output format.',
                'jsonld.UnknownFormat', {'format': output_format})

        try:
            # expand input
            expanded = self.expand(input_, options)
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not expand input before serialization to '
                'RDF.', 'jsonld.RdfError', cause=cause)

        quads = rdf.to_rdf(expanded, options)

        # convert to output format
        if output_format:
            return nquads.serialize_nquads(quads)
        return quads

    def process_context(self, active_ctx, local_ctx, options):
        """
        Applies a local context on top of an active context, loading remote
        contexts as needed.

        An object with an @context entry is unwrapped first. Processing
        errors are wrapped in a 'jsonld.ContextError'.

        :param active_ctx: the context to start from, None for the initial
          context.
        :param local_ctx: the context to apply; None resets to the initial
          context.
        :param options: ``base`` (default: ''), ``documentLoader`` and
          ``processingMode`` (default: 'json-ld-1.1').

        :return: the new active context.
        """
        # set default options
        options = options.copy() if options else {}
        options.setdefault('base', '')
        options.setdefault('documentLoader', _default_document_loader)
        options.setdefault('processingMode', 'json-ld-1.1')

        processor = ContextProcessor(options)

        # return initial context early for None context
        if active_ctx is None:
            active_ctx = processor.initial_context()
        if local_ctx is None:
            return processor.initial_context()

        if is_object(local_ctx) and '@context' in local_ctx:
            local_ctx = local_ctx['@context']
        try:
            return processor.process(active_ctx, copy.deepcopy(local_ctx))
        except JsonLdError as cause:
            raise JsonLdError(
                'Could not process JSON-LD context.',
                'jsonld.ContextError', cause=cause)

    def register_rdf_parser(self, content_type, parser):
        """
        Gives this processor its own parser for a format. While it has any,
        the global parsers are ignored.

        :param content_type: the format name.
        :param parser(input): turns the text into a list of quads.
        """
        if self.rdf_parsers is None:
            self.rdf_parsers = {}
        self.rdf_parsers[content_type] = parser

    def unregister_rdf_parser(self, content_type):
        """
        Drops one of this processor's parsers. Once none are left the
        global parsers apply again.
        """
        if (self.rdf_parsers is not None and
                content_type in self.rdf_parsers):
            del self.rdf_parsers[content_type]
            if len(self.rdf_parsers) == 0:
                self.rdf_parsers = None

    @staticmethod
    def _remote_document(input_, options):
        """
        Loads a string input through the document loader, wraps any other
        input as a RemoteDocument.
        """
        if is_string(input_):
            return load_document(input_, options)
        return {
            'contentType': None,
            'contextUrl': None,
            'documentUrl': None,
            'document': input_
        }


# register the N-Quads RDF parser
for _content_type in _NQUADS_FORMATS:
    register_rdf_parser(_content_type, nquads.parse_nquads)

_default_document_loader = requests_document_loader()
