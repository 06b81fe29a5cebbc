"""
Active contexts and the context processing algorithm.

An :class:`ActiveContext` is never changed once :class:`ContextProcessor`
has finished building it. Processing a local context always derives a new
active context that shares the term definitions of the one it came from, so
sibling subtrees of a document never observe each other's scopes.

.. module:: ldproc.context
  :synopsis: JSON-LD active contexts and context processing
"""

import json
import logging
import re

from . import iri as iri_utils
from .errors import JsonLdError
from .values import (
    arrayify, deep_equal, has_keyword_form, is_bool,
    is_keyword, is_object, is_string, shortest_least)

__all__ = ['ActiveContext', 'ContextProcessor', 'MAX_CONTEXT_URLS']

log = logging.getLogger(__name__)

# maximum nesting of remote contexts
MAX_CONTEXT_URLS = 10

# IRIs ending with one of these characters may be used as prefixes
_GEN_DELIM = re.compile(r'[:/?#\[\]@]$')

# keys allowed in an expanded term definition
_TERM_DEFINITION_KEYS = frozenset([
    '@container', '@context', '@direction', '@id', '@index', '@language',
    '@nest', '@prefix', '@protected', '@reverse', '@type'])

# keys of a local context that are not term definitions
_CONTEXT_KEYWORDS = frozenset([
    '@base', '@direction', '@import', '@language', '@propagate',
    '@protected', '@version', '@vocab'])

_CONTAINERS = frozenset([
    '@graph', '@id', '@index', '@language', '@list', '@set', '@type'])

_CONTAINERS_1_0 = frozenset(['@index', '@language', '@list', '@set'])


class ActiveContext(object):
    """
    The state used to interpret a JSON-LD document at one point of the tree.

    :ivar base: the base IRI, None when resolution is disabled.
    :ivar original_base: the document base the context started from.
    :ivar vocab: the vocabulary mapping.
    :ivar language: the default language.
    :ivar direction: the default base direction ('ltr' or 'rtl').
    :ivar processing_mode: 'json-ld-1.0' or 'json-ld-1.1'.
    :ivar previous: the context to revert to when entering a new node
      object, set by non-propagated (type-scoped) contexts.
    :ivar mappings: term to term definition.
    """

    def __init__(self, base=None, processing_mode='json-ld-1.1'):
        self.base = base
        self.original_base = base
        self.vocab = None
        self.language = None
        self.direction = None
        self.processing_mode = processing_mode
        self.previous = None
        self.mappings = {}
        self._inverse = None

    def clone(self):
        """
        Derives a child context that shares this context's term definitions.

        :return: the child context.
        """
        child = ActiveContext.__new__(ActiveContext)
        child.base = self.base
        child.original_base = self.original_base
        child.vocab = self.vocab
        child.language = self.language
        child.direction = self.direction
        child.processing_mode = self.processing_mode
        child.previous = self.previous
        child.mappings = dict(self.mappings)
        child._inverse = None
        return child

    def reset(self):
        """
        Creates a fresh context keeping only the original base IRI.

        :return: the new context.
        """
        rval = ActiveContext(self.original_base, self.processing_mode)
        rval.original_base = self.original_base
        return rval

    def is_1_0(self):
        return self.processing_mode == 'json-ld-1.0'

    def has_protected_terms(self):
        return any(
            definition.get('protected')
            for definition in self.mappings.values())

    def get_term_definition(self, term):
        if term is None:
            return None
        return self.mappings.get(term)

    def get_value(self, term, type_):
        """
        Gets the value for the given term definition key, falling back to
        the context default for '@language' and '@direction'.

        :param term: the term.
        :param type_: the term definition key (eg: '@type', '@language').

        :return: the value, None if not set.
        """
        rval = None
        if type_ == '@language':
            rval = self.language
        elif type_ == '@direction':
            rval = self.direction

        definition = self.get_term_definition(term)
        if definition is not None and type_ in definition:
            rval = definition[type_]
        return rval

    def get_container(self, term):
        definition = self.get_term_definition(term)
        if definition is None:
            return []
        return definition.get('@container', [])

    @property
    def inverse(self):
        """
        The inverse context used for term selection, built on first use.

        It maps IRI to container key to '@language', '@type' or '@any' to
        preferred value to term.
        """
        if self._inverse is None:
            self._inverse = self._build_inverse()
        return self._inverse

    def _build_inverse(self):
        inverse = {}

        # handle default language and direction
        default_language = self.language or '@none'
        if self.direction:
            default_language = (
                '%s_%s' % (self.language or '', self.direction)).lower()

        # create term selections for each mapping in the context, ordered by
        # shortest and then lexicographically least
        for term in sorted(self.mappings, key=shortest_least):
            definition = self.mappings[term]
            if definition['@id'] is None:
                continue

            container = ''.join(
                sorted(definition.get('@container') or ['@none']))
            container_map = inverse.setdefault(definition['@id'], {})
            entry = container_map.setdefault(container, {
                '@language': {},
                '@type': {},
                '@any': {}})
            entry['@any'].setdefault('@none', term)

            has_language = '@language' in definition
            has_direction = '@direction' in definition

            # term is preferred for values using @reverse
            if definition['reverse']:
                entry['@type'].setdefault('@reverse', term)
            elif definition.get('@type') == '@none':
                entry['@language'].setdefault('@any', term)
                entry['@type'].setdefault('@any', term)
            # term is preferred for values using specific type
            elif '@type' in definition:
                entry['@type'].setdefault(definition['@type'], term)
            # term is preferred for values using specific language and
            # direction
            elif has_language or has_direction:
                language = definition.get('@language')
                direction = definition.get('@direction')
                if has_language and has_direction:
                    if language is None and direction is None:
                        key = '@null'
                    else:
                        key = '%s_%s' % (language or '', direction or '')
                elif has_language:
                    key = language if language is not None else '@null'
                else:
                    key = '_' + direction if direction else '@none'
                entry['@language'].setdefault(key.lower(), term)
            # term is preferred for values w/default language or no type and
            # no language
            else:
                entry['@language'].setdefault(default_language, term)
                entry['@language'].setdefault('@none', term)
                entry['@type'].setdefault('@none', term)

        return inverse


class ContextProcessor(object):
    """
    Processes local contexts into active contexts for one top-level call.

    Remote contexts are loaded through the document loader given in the
    options at most once per processor. Results of processing a local
    context against an active context are memoized for the same pair.
    """

    def __init__(self, options):
        """
        :param options: the options to use:
          base the document base IRI.
          documentLoader(url, options) the document loader.
          [processingMode] 'json-ld-1.0' or 'json-ld-1.1'.
        """
        self.options = options
        self.document_loader = options['documentLoader']
        self.processing_mode = options.get('processingMode', 'json-ld-1.1')
        self._remote_contexts = {}
        self._processed = {}

    def initial_context(self):
        """
        Gets the initial active context for the document base.

        :return: the initial context.
        """
        return ActiveContext(
            self.options.get('base') or None, self.processing_mode)

    def process(
            self, active_ctx, local_ctx, base_url=None, remote_contexts=None,
            override_protected=False, propagate=True, validate_scoped=True):
        """
        Processes a local context and returns a new active context.

        :param active_ctx: the current active context.
        :param local_ctx: the local context to process: an object, an IRI,
          None or an array of those.
        :param base_url: the IRI relative context IRIs are resolved against,
          defaults to the document base.
        :param remote_contexts: the remote context IRIs being processed,
          used to detect recursive inclusion.
        :param override_protected: True to allow protected terms to be
          redefined (property-scoped contexts).
        :param propagate: False for contexts that only apply to the node
          object they appear on (type-scoped contexts).
        :param validate_scoped: False while validating scoped contexts of a
          term definition, which skips already visited remote contexts.

        :return: the new active context.
        """
        if base_url is None:
            base_url = self.options.get('base')
        if remote_contexts is None:
            remote_contexts = []

        # contexts still being built are never cached
        cacheable = validate_scoped and not remote_contexts
        key = (id(active_ctx), id(local_ctx), base_url,
               override_protected, propagate)
        cached = self._processed.get(key) if cacheable else None
        if (cached is not None and cached[0] is active_ctx and
                cached[1] is local_ctx):
            return cached[2]

        rval = self._process(
            active_ctx, local_ctx, base_url, remote_contexts,
            override_protected, propagate, validate_scoped)

        if cacheable:
            self._processed[key] = (active_ctx, local_ctx, rval)
        return rval

    update = process

    def _process(
            self, active_ctx, local_ctx, base_url, remote_contexts,
            override_protected, propagate, validate_scoped):
        ctxs = arrayify(local_ctx)

        # no contexts in array, nothing to change
        if len(ctxs) == 0:
            return active_ctx

        # an object's own @propagate overrides the caller's default
        if is_object(local_ctx) and '@propagate' in local_ctx:
            propagate = local_ctx['@propagate']

        rval = active_ctx.clone()

        # remember where to revert to for non-propagated contexts
        if not propagate and rval.previous is None:
            log.debug('Applying non-propagated context %r', local_ctx)
            rval.previous = active_ctx

        for ctx in ctxs:
            # reset to initial context
            if ctx is None:
                if not override_protected and rval.has_protected_terms():
                    raise JsonLdError(
                        'Tried to nullify a context with protected terms '
                        'outside of a term definition.',
                        'jsonld.SyntaxError', {},
                        code='invalid context nullification')
                previous = rval.previous
                rval = active_ctx.reset()
                if not propagate:
                    rval.previous = previous
                continue

            # dereference remote contexts
            if is_string(ctx):
                rval = self._process_remote(
                    rval, ctx, base_url, remote_contexts, validate_scoped)
                continue

            # context must be an object now
            if not is_object(ctx):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context must be an object.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid local context')

            self._process_object(
                rval, ctx, base_url, remote_contexts, override_protected)

        return rval

    def _process_remote(
            self, active_ctx, url, base_url, remote_contexts,
            validate_scoped):
        url = iri_utils.resolve(base_url, url)

        if url in remote_contexts:
            if not validate_scoped:
                return active_ctx
            raise JsonLdError(
                'Cyclical @context URLs detected.',
                'jsonld.ContextUrlError', {'url': url},
                code='recursive context inclusion')

        if len(remote_contexts) >= MAX_CONTEXT_URLS:
            raise JsonLdError(
                'Maximum number of @context URLs exceeded.',
                'jsonld.ContextUrlError', {'max': MAX_CONTEXT_URLS},
                code='context overflow')

        ctx = self.load_remote_context(url)
        return self.process(
            active_ctx, ctx, base_url=url,
            remote_contexts=remote_contexts + [url],
            validate_scoped=validate_scoped)

    def load_remote_context(self, url):
        """
        Retrieves the @context of the document at the given URL.

        :param url: the absolute URL of the context document.

        :return: the value of its @context entry.
        """
        if url in self._remote_contexts:
            return self._remote_contexts[url]

        log.debug('Loading remote context %s', url)
        try:
            remote_doc = self.document_loader(url, {})
            document = remote_doc['document']
        except Exception as cause:
            raise JsonLdError(
                'Dereferencing a URL did not result in a valid JSON-LD '
                'context.',
                'jsonld.ContextUrlError', {'url': url},
                code='loading remote context failed', cause=cause)

        # parse string context as JSON
        if is_string(document):
            try:
                document = json.loads(document)
            except ValueError as cause:
                raise JsonLdError(
                    'Could not parse JSON from URL.',
                    'jsonld.ParseError', {'url': url},
                    code='loading remote context failed', cause=cause)

        if not is_object(document) or '@context' not in document:
            raise JsonLdError(
                'Dereferencing a URL did not result in a JSON object with '
                'an @context entry.',
                'jsonld.InvalidUrl', {'url': url},
                code='invalid remote context')

        ctx = document['@context']
        self._remote_contexts[url] = ctx
        return ctx

    def _process_object(
            self, rval, ctx, base_url, remote_contexts, override_protected):
        # handle @version
        if '@version' in ctx:
            if ctx['@version'] != 1.1:
                raise JsonLdError(
                    'Unsupported JSON-LD version: ' + str(ctx['@version']),
                    'jsonld.UnsupportedVersion', {'context': ctx},
                    code='invalid @version value')
            if rval.is_1_0():
                raise JsonLdError(
                    '@version: ' + str(ctx['@version']) +
                    ' not compatible with ' + rval.processing_mode,
                    'jsonld.ProcessingModeConflict', {'context': ctx},
                    code='processing mode conflict')

        if '@import' in ctx:
            ctx = self._import(rval, ctx, base_url)

        # @base is ignored in remote contexts
        if '@base' in ctx and not remote_contexts:
            base = ctx['@base']
            if base is None:
                rval.base = None
            elif iri_utils.is_absolute_iri(base):
                rval.base = iri_utils.resolve(None, base)
            elif is_string(base):
                if rval.base is None:
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; a relative "@base" needs '
                        'a base IRI to resolve against.',
                        'jsonld.SyntaxError', {'context': ctx},
                        code='invalid base IRI')
                rval.base = iri_utils.resolve(rval.base, base)
            else:
                raise JsonLdError(
                    'Invalid JSON-LD syntax; the value of "@base" in a '
                    '@context must be a string or null.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid base IRI')

        if '@vocab' in ctx:
            value = ctx['@vocab']
            if value is None:
                rval.vocab = None
            elif not is_string(value):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; the value of "@vocab" in a '
                    '@context must be a string or null.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid vocab mapping')
            elif (rval.is_1_0() and
                    not iri_utils.is_absolute_iri(value) and
                    not iri_utils.is_blank_node_id(value)):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; the value of "@vocab" in a '
                    '@context must be an absolute IRI.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid vocab mapping')
            else:
                vocab = self.expand_iri(rval, value, base=True, vocab=True)
                if not (iri_utils.is_absolute_iri(vocab) or
                        iri_utils.is_blank_node_id(vocab)):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; the value of "@vocab" in a '
                        '@context must expand to an IRI.',
                        'jsonld.SyntaxError', {'context': ctx},
                        code='invalid vocab mapping')
                rval.vocab = vocab

        if '@language' in ctx:
            value = ctx['@language']
            if value is None:
                rval.language = None
            elif not is_string(value):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; the value of "@language" in '
                    'a @context must be a string or null.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid default language')
            else:
                rval.language = value.lower()

        if '@direction' in ctx:
            value = ctx['@direction']
            if rval.is_1_0():
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @direction is not supported '
                    'in json-ld-1.0.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid context entry')
            if value not in (None, 'ltr', 'rtl'):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; the value of "@direction" in '
                    'a @context must be null, "ltr" or "rtl".',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid base direction')
            rval.direction = value

        if '@propagate' in ctx:
            if rval.is_1_0():
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @propagate is not supported '
                    'in json-ld-1.0.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid context entry')
            if not is_bool(ctx['@propagate']):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @propagate value must be a '
                    'boolean.',
                    'jsonld.SyntaxError', {'context': ctx},
                    code='invalid @propagate value')

        protected = ctx.get('@protected', False)
        if not is_bool(protected):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @protected value must be a '
                'boolean.',
                'jsonld.SyntaxError', {'context': ctx},
                code='invalid @protected value')

        # define context mappings for keys in local context
        defined = {}
        term_options = {
            'base_url': base_url,
            'protected': protected,
            'override_protected': override_protected,
            'remote_contexts': remote_contexts
        }
        for term in ctx:
            if term in _CONTEXT_KEYWORDS:
                continue
            self._create_term_definition(
                rval, ctx, term, defined, term_options)

    def _import(self, active_ctx, ctx, base_url):
        value = ctx['@import']
        if active_ctx.is_1_0():
            raise JsonLdError(
                'Invalid JSON-LD syntax; @import is not supported in '
                'json-ld-1.0.',
                'jsonld.SyntaxError', {'context': ctx},
                code='invalid context entry')
        if not is_string(value):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @import must be a string.',
                'jsonld.SyntaxError', {'context': ctx},
                code='invalid @import value')

        imported = self.load_remote_context(
            iri_utils.resolve(base_url, value))
        if not is_object(imported):
            raise JsonLdError(
                'Invalid JSON-LD syntax; an imported context must be a '
                'single object.',
                'jsonld.SyntaxError', {'url': value},
                code='invalid remote context')
        if '@import' in imported:
            raise JsonLdError(
                'Invalid JSON-LD syntax; an imported context must not '
                'include @import.',
                'jsonld.SyntaxError', {'url': value},
                code='invalid context entry')

        merged = dict(imported)
        merged.update(ctx)
        del merged['@import']
        return merged

    def _create_term_definition(
            self, active_ctx, local_ctx, term, defined, term_options):
        """
        Creates a term definition during context processing.

        :param active_ctx: the context being built.
        :param local_ctx: the local context being processed.
        :param term: the key in the local context to define the mapping for.
        :param defined: a map of defining/defined keys to detect cycles
          and prevent double definitions.
        :param term_options: base_url, protected, override_protected and
          remote_contexts of the local context being processed.
        """
        if term in defined:
            # term already defined
            if defined[term]:
                return
            # cycle detected
            raise JsonLdError(
                'Cyclical context definition detected.',
                'jsonld.CyclicalContext', {
                    'context': local_ctx,
                    'term': term
                }, code='cyclic IRI mapping')

        if term == '':
            raise JsonLdError(
                'Invalid JSON-LD syntax; a term cannot be an empty string.',
                'jsonld.SyntaxError', {'context': local_ctx},
                code='invalid term definition')

        # now defining term
        defined[term] = False

        value = local_ctx[term]

        if term == '@type' and is_object(value) and not active_ctx.is_1_0():
            if (not value or
                    set(value) - {'@container', '@protected'} or
                    value.get('@container', '@set') != '@set'):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @type may only be defined with '
                    '"@container": "@set" and "@protected".',
                    'jsonld.SyntaxError', {'context': local_ctx},
                    code='keyword redefinition')
        elif is_keyword(term):
            raise JsonLdError(
                'Invalid JSON-LD syntax; keywords cannot be overridden.',
                'jsonld.SyntaxError', {'context': local_ctx, 'term': term},
                code='keyword redefinition')
        elif has_keyword_form(term):
            log.debug('Ignoring reserved term %s', term)
            defined[term] = True
            return

        # remove old mapping
        previous = active_ctx.mappings.pop(term, None)

        # convert short-hand value to object w/@id
        simple_term = False
        if value is None:
            value = {'@id': None}
        elif is_string(value):
            simple_term = True
            value = {'@id': value}

        if not is_object(value):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context property values must be '
                'strings or objects.', 'jsonld.SyntaxError',
                {'context': local_ctx, 'term': term},
                code='invalid term definition')

        # make sure term definition only has expected keywords
        for kw in value:
            if (kw not in _TERM_DEFINITION_KEYS or (
                    active_ctx.is_1_0() and kw in (
                        '@context', '@direction', '@index', '@nest',
                        '@prefix', '@protected'))):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; a term definition must not '
                    'contain ' + kw,
                    'jsonld.SyntaxError',
                    {'context': local_ctx, 'term': term},
                    code='invalid term definition')

        mapping = {
            'reverse': False,
            'protected': term_options['protected'],
            '_prefix': False
        }

        if '@protected' in value:
            if not is_bool(value['@protected']):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @protected value must be a '
                    'boolean.',
                    'jsonld.SyntaxError', {'context': local_ctx},
                    code='invalid @protected value')
            mapping['protected'] = value['@protected']

        if term == '@type':
            mapping['@id'] = '@type'
        elif '@reverse' in value:
            self._define_reverse(active_ctx, local_ctx, term, value,
                                 mapping, defined, term_options)
        elif '@id' in value and value['@id'] != term:
            id_ = value['@id']
            if id_ is None:
                mapping['@id'] = None
            elif not is_string(id_):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context @id value must be a '
                    'string.', 'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid IRI mapping')
            elif not is_keyword(id_) and has_keyword_form(id_):
                log.debug('Ignoring term %s mapped to reserved %s', term, id_)
                defined[term] = True
                return
            else:
                id_ = self.expand_iri(
                    active_ctx, id_, vocab=True, local_ctx=local_ctx,
                    defined=defined, term_options=term_options)
                if not (is_keyword(id_) or
                        iri_utils.is_absolute_iri(id_) or
                        iri_utils.is_blank_node_id(id_)):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; @context @id value must be '
                        'an absolute IRI, a blank node identifier, or a '
                        'keyword.', 'jsonld.SyntaxError',
                        {'context': local_ctx, 'term': term},
                        code='invalid IRI mapping')
                if id_ == '@context':
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; @context cannot be '
                        'aliased.', 'jsonld.SyntaxError',
                        {'context': local_ctx}, code='invalid keyword alias')

                # a term that looks like an IRI must expand to itself
                if ':' in term[1:-1] or '/' in term:
                    defined[term] = True
                    expanded_term = self.expand_iri(
                        active_ctx, term, vocab=True, local_ctx=local_ctx,
                        defined=defined, term_options=term_options)
                    if expanded_term != id_:
                        raise JsonLdError(
                            'Invalid JSON-LD syntax; term in form of IRI '
                            'must expand to definition.',
                            'jsonld.SyntaxError',
                            {'context': local_ctx, 'term': term},
                            code='invalid IRI mapping')

                mapping['@id'] = id_
                mapping['_prefix'] = bool(
                    ':' not in term and '/' not in term and
                    (simple_term or active_ctx.is_1_0()) and
                    (_GEN_DELIM.search(id_) or
                     iri_utils.is_blank_node_id(id_)))
        elif ':' in term[1:]:
            # term is a compact IRI or an absolute IRI
            prefix, suffix = term.split(':', 1)
            if prefix in local_ctx:
                self._create_term_definition(
                    active_ctx, local_ctx, prefix, defined, term_options)
            prefix_mapping = active_ctx.mappings.get(prefix)
            if prefix_mapping is not None and prefix_mapping['@id']:
                mapping['@id'] = prefix_mapping['@id'] + suffix
            else:
                mapping['@id'] = term
        elif '/' in term:
            # term is a relative IRI resolved against the vocabulary
            id_ = self.expand_iri(active_ctx, term, vocab=True)
            if not iri_utils.is_absolute_iri(id_):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; a relative IRI term must '
                    'expand to an absolute IRI.',
                    'jsonld.SyntaxError',
                    {'context': local_ctx, 'term': term},
                    code='invalid IRI mapping')
            mapping['@id'] = id_
        else:
            # non-IRIs MUST define @ids if @vocab not available
            if active_ctx.vocab is None:
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context terms must define '
                    'an @id.', 'jsonld.SyntaxError', {
                        'context': local_ctx,
                        'term': term
                    }, code='invalid IRI mapping')
            mapping['@id'] = active_ctx.vocab + term

        # IRI mapping now defined
        defined[term] = True

        if '@type' in value:
            mapping['@type'] = self._expand_type_mapping(
                active_ctx, local_ctx, value['@type'], defined, term_options)

        if '@container' in value:
            mapping['@container'] = self._validate_container(
                active_ctx, local_ctx, value['@container'], mapping)

        if '@index' in value:
            index = value['@index']
            if '@index' not in mapping.get('@container', []):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @index without @index in '
                    '@container.', 'jsonld.SyntaxError',
                    {'context': local_ctx, 'term': term},
                    code='invalid term definition')
            if (not is_string(index) or index.startswith('@') or
                    not iri_utils.is_absolute_iri(
                        self.expand_iri(active_ctx, index, vocab=True))):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @index must expand to an '
                    'IRI.', 'jsonld.SyntaxError',
                    {'context': local_ctx, 'term': term},
                    code='invalid term definition')
            mapping['@index'] = index

        # scoped contexts
        if '@context' in value:
            self._validate_scoped_context(
                active_ctx, value['@context'], term_options)
            mapping['@context'] = value['@context']
            mapping['_base_url'] = term_options['base_url']

        if '@language' in value and '@type' not in value:
            language = value['@language']
            if not (language is None or is_string(language)):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context @language value must be '
                    'a string or null.', 'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid language mapping')
            if language is not None:
                language = language.lower()
            mapping['@language'] = language

        if '@direction' in value and '@type' not in value:
            direction = value['@direction']
            if direction not in (None, 'ltr', 'rtl'):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @direction must be null, '
                    '"ltr" or "rtl".', 'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid base direction')
            mapping['@direction'] = direction

        # term may be used as prefix
        if '@prefix' in value:
            if ':' in term or '/' in term:
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context @prefix used on a '
                    'compact IRI term.',
                    'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid term definition')
            if not is_bool(value['@prefix']):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context value for @prefix '
                    'must be boolean.',
                    'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid @prefix value')
            if value['@prefix'] and is_keyword(mapping['@id']):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; keywords may not be used as '
                    'prefixes.',
                    'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid term definition')
            mapping['_prefix'] = value['@prefix']

        if '@nest' in value:
            nest = value['@nest']
            if not is_string(nest) or (nest != '@nest' and
                                       nest.startswith('@')):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; @context @nest value must be '
                    'a string which is not a keyword other than @nest.',
                    'jsonld.SyntaxError',
                    {'context': local_ctx}, code='invalid @nest value')
            mapping['@nest'] = nest

        # protected terms can only be redefined identically
        if (previous is not None and previous.get('protected') and
                not term_options['override_protected']):
            if not _same_definition(previous, mapping):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; tried to redefine a protected '
                    'term.',
                    'jsonld.SyntaxError', {'context': local_ctx, 'term': term},
                    code='protected term redefinition')
            mapping = previous

        active_ctx.mappings[term] = mapping

    def _define_reverse(self, active_ctx, local_ctx, term, value, mapping,
                        defined, term_options):
        if '@id' in value or '@nest' in value:
            raise JsonLdError(
                'Invalid JSON-LD syntax; an @reverse term definition must '
                'not contain @id or @nest.', 'jsonld.SyntaxError',
                {'context': local_ctx}, code='invalid reverse property')
        reverse = value['@reverse']
        if not is_string(reverse):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context @reverse value must be '
                'a string.', 'jsonld.SyntaxError', {'context': local_ctx},
                code='invalid IRI mapping')

        id_ = self.expand_iri(
            active_ctx, reverse, vocab=True, local_ctx=local_ctx,
            defined=defined, term_options=term_options)
        if not (iri_utils.is_absolute_iri(id_) or
                iri_utils.is_blank_node_id(id_)):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context @reverse value must be '
                'an absolute IRI or a blank node identifier.',
                'jsonld.SyntaxError', {'context': local_ctx, 'term': term},
                code='invalid IRI mapping')
        mapping['@id'] = id_
        mapping['reverse'] = True

    def _expand_type_mapping(
            self, active_ctx, local_ctx, type_, defined, term_options):
        if not is_string(type_):
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context @type value must be '
                'a string.', 'jsonld.SyntaxError',
                {'context': local_ctx}, code='invalid type mapping')

        type_ = self.expand_iri(
            active_ctx, type_, vocab=True, local_ctx=local_ctx,
            defined=defined, term_options=term_options)
        if type_ in ('@id', '@vocab'):
            return type_
        if type_ in ('@json', '@none') and not active_ctx.is_1_0():
            return type_
        if not iri_utils.is_absolute_iri(type_):
            raise JsonLdError(
                'Invalid JSON-LD syntax; an @context @type value must '
                'be an absolute IRI, @id or @vocab.', 'jsonld.SyntaxError',
                {'context': local_ctx, 'type': type_},
                code='invalid type mapping')
        return type_

    def _validate_container(self, active_ctx, local_ctx, value, mapping):
        container = arrayify(value)
        valid = _CONTAINERS_1_0 if active_ctx.is_1_0() else _CONTAINERS
        is_valid = all(
            is_string(c) and c in valid for c in container)

        if active_ctx.is_1_0():
            is_valid = is_valid and is_string(value)
        elif '@list' in container:
            is_valid = is_valid and len(container) == 1
        elif '@graph' in container:
            is_valid = is_valid and not (
                set(container) - {'@graph', '@id', '@index', '@set'}) and (
                not ('@id' in container and '@index' in container))
        else:
            has_set = '@set' in container
            is_valid = is_valid and len(container) <= (2 if has_set else 1)

        if not is_valid:
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context @container value '
                'must be one of the following: ' +
                ', '.join(sorted(valid)) + '.',
                'jsonld.SyntaxError',
                {'context': local_ctx, 'container': value},
                code='invalid container mapping')

        if mapping['reverse'] and set(container) - {'@index', '@set'}:
            raise JsonLdError(
                'Invalid JSON-LD syntax; @context @container value for '
                'an @reverse type definition must be @index or @set.',
                'jsonld.SyntaxError', {'context': local_ctx},
                code='invalid reverse property')

        if '@type' in container:
            type_ = mapping.setdefault('@type', '@id')
            if type_ not in ('@id', '@vocab'):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; a @type map requires a type '
                    'mapping of @id or @vocab.',
                    'jsonld.SyntaxError', {'context': local_ctx},
                    code='invalid type mapping')

        return container

    def _validate_scoped_context(self, active_ctx, scoped, term_options):
        try:
            self.process(
                active_ctx, scoped, base_url=term_options['base_url'],
                remote_contexts=list(term_options['remote_contexts']),
                override_protected=True, validate_scoped=False)
        except JsonLdError as cause:
            raise JsonLdError(
                'Invalid JSON-LD syntax; invalid scoped context.',
                'jsonld.SyntaxError', {'context': scoped},
                code='invalid scoped context', cause=cause)

    def expand_iri(
            self, active_ctx, value, base=False, vocab=False,
            local_ctx=None, defined=None, term_options=None):
        """
        Expands a string value to a full IRI. The string may be a term, a
        prefix, a relative IRI, or an absolute IRI. The associated absolute
        IRI will be returned.

        :param active_ctx: the current active context.
        :param value: the string value to expand.
        :param base: True to resolve IRIs against the base IRI, False not to.
        :param vocab: True to concatenate after @vocab, False not to.
        :param local_ctx: the local context being processed (only given if
          called during context processing).
        :param defined: a map for tracking cycles in context definitions (only
          given if called during context processing).
        :param term_options: the term creation options of the local context
          being processed.

        :return: the expanded value, None if the value is reserved or
          explicitly unmapped.
        """
        # already expanded
        if value is None or is_keyword(value) or not is_string(value):
            return value

        # reserved for future keywords
        if has_keyword_form(value):
            return None

        # define dependency not if defined
        if (local_ctx is not None and value in local_ctx and
                defined.get(value) is not True):
            self._create_term_definition(
                active_ctx, local_ctx, value, defined, term_options)

        definition = active_ctx.mappings.get(value)
        if definition is not None:
            if is_keyword(definition['@id']):
                return definition['@id']
            if vocab:
                return definition['@id']

        # split value into prefix:suffix
        if ':' in value[1:]:
            prefix, suffix = value.split(':', 1)

            # do not expand blank nodes (prefix of '_') or already-absolute
            # IRIs (suffix of '//')
            if prefix == '_' or suffix.startswith('//'):
                return value

            # prefix dependency not defined, define it
            if (local_ctx is not None and prefix in local_ctx and
                    defined.get(prefix) is not True):
                self._create_term_definition(
                    active_ctx, local_ctx, prefix, defined, term_options)

            # use mapping if prefix is defined
            mapping = active_ctx.mappings.get(prefix)
            if (mapping is not None and mapping['@id'] is not None and
                    mapping['_prefix']):
                return mapping['@id'] + suffix

            # already absolute IRI
            if iri_utils.is_absolute_iri(value):
                return value

        # prepend vocab
        if vocab and active_ctx.vocab is not None:
            return active_ctx.vocab + value

        # resolve against base
        if base:
            return iri_utils.resolve(active_ctx.base, value)

        return value


def _same_definition(d1, d2):
    ignored = ('protected', '_base_url')
    return deep_equal(
        {k: v for k, v in d1.items() if k not in ignored},
        {k: v for k, v in d2.items() if k not in ignored})
