"""
The JSON-LD compaction algorithm.

Compaction is driven by the inverse context of the active context: for every
IRI it records which terms can express it for a given container, type or
language. :meth:`Compactor.compact_iri` picks the most specific term that
round-trips the value and falls back to a vocabulary-relative IRI, a compact
IRI or a base-relative IRI.

.. module:: ldproc.compaction
  :synopsis: JSON-LD compaction
"""

from . import iri as iri_utils
from .errors import JsonLdError
from .values import (
    add_value, arrayify, has_keyword_form, is_array, is_graph, is_keyword,
    is_list, is_object, is_simple_graph, is_string, is_subject_reference,
    is_value, shortest_least)

__all__ = ['Compactor']


class Compactor(object):
    """
    Compacts expanded documents against active contexts built by a
    ContextProcessor.
    """

    def __init__(self, processor, options):
        """
        :param processor: the ContextProcessor of the current call.
        :param options: the compaction options:
          [compactArrays] True to replace arrays with a single element by
            the element itself (default: True).
        """
        self.processor = processor
        self.options = options

    def compact(self, active_ctx, active_property, element):
        """
        Recursively compacts an element using the given active context. All
        values must be in expanded form before this method is called.

        :param active_ctx: the active context to use.
        :param active_property: the compacted property with the element to
          compact, None for none.
        :param element: the element to compact.

        :return: the compacted value.
        """
        # recursively compact array
        if is_array(element):
            rval = []
            for e in element:
                # compact, dropping any None values
                e = self.compact(active_ctx, active_property, e)
                if e is not None:
                    rval.append(e)
            if self._compact_arrays and len(rval) == 1:
                # use single element if no @list or @set container applies
                container = active_ctx.get_container(active_property)
                if (active_property not in ('@graph', '@set') and
                        '@list' not in container and
                        '@set' not in container):
                    rval = rval[0]
            return rval

        # only primitives remain which are already compact
        if not is_object(element):
            return element

        # revert type-scoped contexts when entering a node object
        if (active_ctx.previous is not None and not is_value(element) and
                not is_subject_reference(element)):
            active_ctx = active_ctx.previous

        # use any scoped context on active_property
        definition = active_ctx.get_term_definition(active_property)
        if definition is not None and '@context' in definition:
            active_ctx = self.processor.process(
                active_ctx, definition['@context'],
                base_url=definition['_base_url'], override_protected=True)

        # do value compaction on @values and subject references
        if is_value(element) or is_subject_reference(element):
            return self.compact_value(active_ctx, active_property, element)

        # FIXME: avoid misuse of active property as an expanded property?
        inside_reverse = (active_property == '@reverse')

        rval = {}

        # apply any context defined on a type, in lexicographical order of
        # the compacted types
        type_scoped_ctx = active_ctx
        compacted_types = sorted(
            self.compact_iri(type_scoped_ctx, type_, vocab=True)
            for type_ in element.get('@type', []))
        for type_ in compacted_types:
            type_definition = type_scoped_ctx.get_term_definition(type_)
            if (type_definition is not None and
                    '@context' in type_definition):
                active_ctx = self.processor.process(
                    active_ctx, type_definition['@context'],
                    base_url=type_definition['_base_url'], propagate=False)

        # recursively process element keys in order
        for expanded_property, expanded_value in sorted(element.items()):
            if expanded_property == '@id':
                compacted_value = [
                    self.compact_iri(active_ctx, expanded_iri)
                    for expanded_iri in arrayify(expanded_value)]
                if len(compacted_value) == 1:
                    compacted_value = compacted_value[0]

                # use keyword alias and add value
                alias = self.compact_iri(active_ctx, '@id')
                add_value(rval, alias, compacted_value)
                continue

            if expanded_property == '@type':
                # types are compacted against the context outside their own
                # scoped contexts
                compacted_value = [
                    self.compact_iri(type_scoped_ctx, expanded_iri, vocab=True)
                    for expanded_iri in arrayify(expanded_value)]
                if len(compacted_value) == 1:
                    compacted_value = compacted_value[0]

                alias = self.compact_iri(active_ctx, '@type')
                container = active_ctx.get_container(alias)
                as_array = (
                    ('@set' in container and not active_ctx.is_1_0()) or
                    (is_array(compacted_value) and
                        len(compacted_value) == 0))
                add_value(
                    rval, alias, compacted_value, property_is_array=as_array)
                continue

            # handle @reverse
            if expanded_property == '@reverse':
                # recursively compact expanded value
                compacted_value = self.compact(
                    active_ctx, '@reverse', expanded_value)

                # handle double-reversed properties
                for compacted_property, value in list(
                        compacted_value.items()):
                    mapping = active_ctx.get_term_definition(
                        compacted_property)
                    if mapping is not None and mapping['reverse']:
                        container = active_ctx.get_container(
                            compacted_property)
                        use_array = (
                            '@set' in container or not self._compact_arrays)
                        add_value(
                            rval, compacted_property, value,
                            property_is_array=use_array)
                        del compacted_value[compacted_property]

                if len(compacted_value) > 0:
                    # use keyword alias and add value
                    alias = self.compact_iri(active_ctx, expanded_property)
                    add_value(rval, alias, compacted_value)
                continue

            if expanded_property == '@preserve':
                # compact using active_property
                compacted_value = self.compact(
                    active_ctx, active_property, expanded_value)
                if not (is_array(compacted_value) and
                        len(compacted_value) == 0):
                    add_value(rval, expanded_property, compacted_value)
                continue

            # handle @index
            if expanded_property == '@index':
                # drop @index if inside an @index container
                container = active_ctx.get_container(active_property)
                if '@index' in container:
                    continue

                # use keyword alias and add value
                alias = self.compact_iri(active_ctx, expanded_property)
                add_value(rval, alias, expanded_value)
                continue

            # skip array processing for keywords that aren't @graph or @list
            if (expanded_property != '@graph' and
                    expanded_property != '@list' and
                    is_keyword(expanded_property)):
                # use keyword alias and add value as is
                alias = self.compact_iri(active_ctx, expanded_property)
                add_value(rval, alias, expanded_value)
                continue

            # Note: expanded value must be an array due to expansion
            # algorithm.
            if not is_array(expanded_value):
                raise JsonLdError(
                    'JSON-LD compact error; expanded value must be an array.',
                    'jsonld.SyntaxError', {'property': expanded_property},
                    code='invalid expanded value')

            # preserve empty arrays
            if len(expanded_value) == 0:
                item_active_property = self.compact_iri(
                    active_ctx, expanded_property, expanded_value,
                    vocab=True, reverse=inside_reverse)
                nest_result = self._nest_result(
                    active_ctx, rval, item_active_property)
                add_value(
                    nest_result, item_active_property, [],
                    property_is_array=True)

            # recursively process array values
            for expanded_item in expanded_value:
                self._compact_item(
                    active_ctx, rval, expanded_property, expanded_item,
                    inside_reverse)

        return rval

    @property
    def _compact_arrays(self):
        return self.options.get('compactArrays', True)

    def _nest_result(self, active_ctx, rval, item_active_property):
        """
        Gets the object values of a property are added to: the result
        itself, or the object under the term's @nest property.
        """
        definition = active_ctx.get_term_definition(item_active_property)
        nest_property = (definition or {}).get('@nest')
        if not nest_property:
            return rval

        if (nest_property != '@nest' and self.processor.expand_iri(
                active_ctx, nest_property, vocab=True) != '@nest'):
            raise JsonLdError(
                'JSON-LD compact error; nested property must have an @nest '
                'value resolving to @nest.',
                'jsonld.SyntaxError', {'context': active_ctx},
                code='invalid @nest value')
        if not is_object(rval.get(nest_property)):
            rval[nest_property] = {}
        return rval[nest_property]

    def _compact_item(
            self, active_ctx, rval, expanded_property, expanded_item,
            inside_reverse):
        # compact property and get container type
        item_active_property = self.compact_iri(
            active_ctx, expanded_property, expanded_item,
            vocab=True, reverse=inside_reverse)

        # if item_active_property is a @nest property, add values to
        # nest_result, otherwise rval
        nest_result = self._nest_result(
            active_ctx, rval, item_active_property)

        container = active_ctx.get_container(item_active_property)

        # get simple @graph or @list value if appropriate
        is_graph_ = is_graph(expanded_item)
        is_list_ = is_list(expanded_item)
        inner = expanded_item
        if is_list_:
            inner = expanded_item['@list']
        elif is_graph_:
            inner = expanded_item['@graph']

        # recursively compact expanded item
        compacted_item = self.compact(active_ctx, item_active_property, inner)

        # handle @list
        if is_list_:
            # ensure @list is an array
            compacted_item = arrayify(compacted_item)

            if '@list' not in container:
                # wrap using @list alias
                compacted_item = {
                    self.compact_iri(active_ctx, '@list'): compacted_item}

                # include @index from expanded @list, if any
                if '@index' in expanded_item:
                    alias = self.compact_iri(active_ctx, '@index')
                    compacted_item[alias] = expanded_item['@index']
            # can't use @list container for more than 1 list
            elif item_active_property in nest_result:
                raise JsonLdError(
                    'JSON-LD compact error; property has a "@list" '
                    '@container rule but there is more than a single @list '
                    'that matches the compacted term in the document. '
                    'Compaction might mix unwanted items into the list.',
                    'jsonld.SyntaxError',
                    {'property': item_active_property},
                    code='compaction to list of lists')

        # graph object compaction
        if is_graph_:
            as_array = not self._compact_arrays or '@set' in container
            if ('@graph' in container and (
                    '@id' in container or (
                        '@index' in container and
                        is_simple_graph(expanded_item)))):
                map_object = nest_result.setdefault(item_active_property, {})

                # index on @id or @index or alias of @none
                if '@id' in container:
                    key = expanded_item.get('@id')
                    if key is not None:
                        key = self.compact_iri(active_ctx, key)
                else:
                    key = expanded_item.get('@index')
                if key is None:
                    key = self.compact_iri(active_ctx, '@none')
                add_value(
                    map_object, key, compacted_item,
                    property_is_array=as_array)
            elif '@graph' in container and is_simple_graph(expanded_item):
                add_value(
                    nest_result, item_active_property, compacted_item,
                    property_is_array=as_array)
            else:
                # wrap using @graph alias, remove array if only one item and
                # compactArrays not set
                if (is_array(compacted_item) and len(compacted_item) == 1 and
                        self._compact_arrays):
                    compacted_item = compacted_item[0]
                compacted_item = {
                    self.compact_iri(active_ctx, '@graph'): compacted_item}

                # include @id from expanded graph, if any
                if '@id' in expanded_item:
                    compacted_item[self.compact_iri(active_ctx, '@id')] = (
                        self.compact_iri(active_ctx, expanded_item['@id']))

                # include @index from expanded graph, if any
                if '@index' in expanded_item:
                    compacted_item[self.compact_iri(active_ctx, '@index')] = (
                        expanded_item['@index'])

                add_value(
                    nest_result, item_active_property, compacted_item,
                    property_is_array=as_array)

        # handle language, index, id and type maps
        elif ('@language' in container or '@index' in container or
                '@id' in container or '@type' in container):
            # get or create the map object
            map_object = nest_result.setdefault(item_active_property, {})
            key = None

            if '@language' in container:
                if is_value(compacted_item):
                    compacted_item = compacted_item['@value']
                key = expanded_item.get('@language')
            elif '@index' in container:
                definition = active_ctx.get_term_definition(
                    item_active_property)
                index_key = definition.get('@index', '@index')
                if index_key == '@index':
                    key = expanded_item.get('@index')
                else:
                    key = self._pop_index_value(
                        active_ctx, index_key, compacted_item)
            elif '@id' in container:
                if is_object(compacted_item):
                    id_key = self.compact_iri(active_ctx, '@id')
                    key = compacted_item.pop(id_key, None)
                else:
                    # node reference compacted to a string
                    key, compacted_item = compacted_item, {}
            elif '@type' in container:
                type_key = self.compact_iri(active_ctx, '@type')
                types = arrayify(compacted_item.pop(type_key, []))
                key = types.pop(0) if types else None
                if types:
                    add_value(compacted_item, type_key, types)

                # a node reduced to its @id is compacted like a reference
                if (len(compacted_item) == 1 and
                        '@id' in expanded_item):
                    compacted_item = self.compact(
                        active_ctx, item_active_property,
                        {'@id': expanded_item['@id']})

            if key is None:
                key = self.compact_iri(active_ctx, '@none')

            # add compact value to map object using key from expanded value
            # based on the container type
            add_value(
                map_object, key, compacted_item,
                property_is_array='@set' in container)
        else:
            # use an array if compactArrays flag is false, @container is
            # @set or @list, value is an empty array, or key is @graph
            is_array_ = (
                not self._compact_arrays or
                '@set' in container or
                '@list' in container or
                (is_array(compacted_item) and len(compacted_item) == 0) or
                expanded_property == '@list' or
                expanded_property == '@graph')

            if (is_value(expanded_item) and
                    expanded_item.get('@type') == '@json' and
                    is_array(compacted_item)):
                # a JSON array literal is a single value
                _add_json_literal(
                    nest_result, item_active_property, compacted_item,
                    not self._compact_arrays or '@set' in container)
            else:
                # add compact value
                add_value(
                    nest_result, item_active_property, compacted_item,
                    property_is_array=is_array_)

    def _pop_index_value(self, active_ctx, index_key, compacted_item):
        """
        Gets the map key of an item in an index map that indexes on a
        property instead of @index, removing the used value from the
        compacted item.

        :return: the first string value of the index property, None if
          there is none.
        """
        if not is_object(compacted_item):
            return None

        container_key = self.compact_iri(active_ctx, index_key, vocab=True)
        values = arrayify(compacted_item.get(container_key, []))
        key = None
        for i, value in enumerate(values):
            if is_string(value):
                key = value
                del values[i]
                break
        if key is None:
            return None

        if len(values) == 0:
            del compacted_item[container_key]
        elif len(values) == 1:
            compacted_item[container_key] = values[0]
        else:
            compacted_item[container_key] = values
        return key

    def _select_term(
            self, active_ctx, iri, value, containers,
            type_or_language, type_or_language_value):
        """
        Picks the preferred compaction term from the inverse context entry.

        :param active_ctx: the active context.
        :param iri: the IRI to pick the term for.
        :param value: the value to pick the term for.
        :param containers: the preferred containers.
        :param type_or_language: either '@type', '@language' or '@any'.
        :param type_or_language_value: the preferred value for '@type' or
          '@language'

        :return: the preferred term.
        """
        if type_or_language_value is None:
            type_or_language_value = '@null'

        # preferred options for the value of @type or language
        prefs = []

        # determine prefs for @id based on whether value compacts to term
        if ((type_or_language_value == '@id' or
                type_or_language_value == '@reverse') and
                is_object(value) and '@id' in value):
            # prefer @reverse first
            if type_or_language_value == '@reverse':
                prefs.append('@reverse')
            # try to compact value to a term
            term = self.compact_iri(active_ctx, value['@id'], vocab=True)
            mapping = active_ctx.get_term_definition(term)
            if mapping is not None and mapping['@id'] == value['@id']:
                # prefer @vocab
                prefs.extend(['@vocab', '@id'])
            else:
                # prefer @id
                prefs.extend(['@id', '@vocab'])
        else:
            prefs.append(type_or_language_value)

            # a language and direction pair may match on the direction alone
            if '_' in type_or_language_value:
                prefs.append(
                    type_or_language_value[type_or_language_value.index('_'):])
        prefs.extend(['@none', '@any'])

        container_map = active_ctx.inverse[iri]
        for container in containers:
            # skip container if not in map
            if container not in container_map:
                continue
            value_map = container_map[container][type_or_language]
            for pref in prefs:
                # skip type/language preference if not in map
                if pref in value_map:
                    return value_map[pref]
        return None

    def compact_iri(
            self, active_ctx, iri, value=None, vocab=False, reverse=False):
        """
        Compacts an IRI or keyword into a term or CURIE if it can be. If the
        IRI has an associated value it may be passed.

        :param active_ctx: the active context to use.
        :param iri: the IRI to compact.
        :param value: the value to check or None.
        :param vocab: True to compact using @vocab if available, False not to.
        :param reverse: True if a reverse property is being compacted, False
          if not.

        :return: the compacted term, prefix, keyword alias, or original IRI.
        """
        # can't compact None
        if iri is None:
            return iri

        inverse = active_ctx.inverse

        # term is a keyword, force vocab to True
        if is_keyword(iri):
            alias = inverse.get(iri, {}).get('@none', {}).get(
                '@type', {}).get('@none')
            if alias:
                return alias
            vocab = True

        # use inverse context to pick a term if iri is relative to vocab
        if vocab and iri in inverse:
            term = self._select_term(
                active_ctx, iri, value,
                *self._term_preferences(active_ctx, value, reverse))
            if term is not None:
                return term

        # no term match, use @vocab if available
        if vocab and active_ctx.vocab is not None:
            vocab_ = active_ctx.vocab
            if iri.startswith(vocab_) and iri != vocab_:
                # use suffix as relative iri if it is not a term in the
                # active context
                suffix = iri[len(vocab_):]
                if suffix not in active_ctx.mappings:
                    return suffix

        # no term or @vocab match, check for possible CURIEs
        candidate = None
        for term, definition in active_ctx.mappings.items():
            prefix_iri = definition['@id']
            # skip terms with colons, they can't be prefixes
            if ':' in term or not definition['_prefix']:
                continue
            # skip entries with @ids that are not partial matches
            if (prefix_iri is None or is_keyword(prefix_iri) or
                    prefix_iri == iri or not iri.startswith(prefix_iri)):
                continue

            # a CURIE is usable if:
            # 1. it has no mapping, OR
            # 2. value is None, which means we're not compacting an @value,
            #  AND the mapping matches the IRI
            curie = term + ':' + iri[len(prefix_iri):]
            curie_definition = active_ctx.mappings.get(curie)
            is_usable_curie = (
                curie_definition is None or (
                    value is None and curie_definition['@id'] == iri))

            # select curie if it is shorter or the same length but
            # lexicographically less than the current choice
            if is_usable_curie and (
                    candidate is None or
                    shortest_least(curie) < shortest_least(candidate)):
                candidate = curie

        # return curie candidate
        if candidate is not None:
            return candidate

        # an absolute IRI must not be read back as a compact IRI
        if not active_ctx.is_1_0():
            for term, definition in active_ctx.mappings.items():
                if definition['_prefix'] and iri.startswith(term + ':'):
                    raise JsonLdError(
                        'Absolute IRI "%s" confused with prefix "%s".' % (
                            iri, term),
                        'jsonld.SyntaxError',
                        {'iri': iri, 'term': term},
                        code='IRI confused with prefix')

        # compact IRI relative to base
        if not vocab:
            rel = iri_utils.unresolve(active_ctx.base, iri)
            if rel != iri and has_keyword_form(rel):
                rel = './' + rel
            return rel

        # return IRI as is
        return iri

    def _term_preferences(self, active_ctx, value, reverse):
        """
        Gets the containers and the type or language preference to use when
        selecting a term for a value.

        :return: (containers, type_or_language, type_or_language_value).
        """
        # prefer @index if available in value
        containers = []
        if is_object(value) and '@index' in value and '@graph' not in value:
            containers.extend(['@index', '@index@set'])

        # if value is a preserve object, use its value
        if is_object(value) and '@preserve' in value:
            value = value['@preserve'][0]

        # prefer most specific container including @graph
        if is_graph(value):
            if '@index' in value:
                containers.extend([
                    '@graph@index', '@graph@index@set',
                    '@index', '@index@set'])
            if '@id' in value:
                containers.extend(['@graph@id', '@graph@id@set'])
            containers.extend(['@graph', '@graph@set', '@set'])
            if '@index' not in value:
                containers.extend([
                    '@graph@index', '@graph@index@set',
                    '@index', '@index@set'])
            if '@id' not in value:
                containers.extend(['@graph@id', '@graph@id@set'])
        elif is_object(value) and not is_value(value):
            containers.extend(['@id', '@id@set', '@type', '@set@type'])

        # defaults for term selection based on type/language
        type_or_language = '@language'
        type_or_language_value = '@null'

        if reverse:
            type_or_language = '@type'
            type_or_language_value = '@reverse'
            containers.append('@set')
        # choose most specific term that works for all elements in @list
        elif is_list(value):
            # only select @list containers if @index is NOT in value
            if '@index' not in value:
                containers.append('@list')
            list_ = value['@list']
            if len(list_) == 0:
                # any empty list can be matched against any term that uses
                # the @list container regardless of @type or @language
                type_or_language = '@any'
                type_or_language_value = '@none'
            else:
                common_language, common_type = _common_list_preferences(list_)
                if common_type != '@none':
                    type_or_language = '@type'
                    type_or_language_value = common_type
                else:
                    type_or_language_value = common_language
        # non-@list
        else:
            if is_value(value):
                if '@language' in value and '@index' not in value:
                    containers.extend(['@language', '@language@set'])
                    type_or_language_value = _language_key(value)
                elif '@direction' in value and '@index' not in value:
                    type_or_language_value = _language_key(value)
                elif '@type' in value:
                    type_or_language = '@type'
                    type_or_language_value = value['@type']
            else:
                type_or_language = '@type'
                type_or_language_value = '@id'
            containers.append('@set')

        # do term selection
        containers.append('@none')

        # an index map can be used to index values using @none, so add as a
        # low priority
        if is_object(value) and '@index' not in value:
            containers.extend(['@index', '@index@set'])

        # values without type or language can use @language map
        if is_value(value) and len(value) == 1:
            containers.extend(['@language', '@language@set'])

        return containers, type_or_language, type_or_language_value

    def compact_value(self, active_ctx, active_property, value):
        """
        Performs value compaction on an object with @value or @id as the only
        property.

        :param active_ctx: the active context.
        :param active_property: the active property that points to the value.
        :param value: the value to compact.

        :return: the compacted value.
        """
        if is_value(value):
            # get context rules
            type_ = active_ctx.get_value(active_property, '@type')
            language = active_ctx.get_value(active_property, '@language')
            direction = active_ctx.get_value(active_property, '@direction')
            container = active_ctx.get_container(active_property)

            # whether or not the value has an @index that must be preserved
            preserve_index = '@index' in value and '@index' not in container

            # if there's no @index to preserve
            if not preserve_index and type_ != '@none':
                # matching @type specified in context, compact
                if '@type' in value:
                    if value['@type'] == type_:
                        return value['@value']
                # matching @language and @direction, compact
                elif '@language' in value or '@direction' in value:
                    if (_lower(value.get('@language')) == _lower(language) and
                            value.get('@direction') == direction):
                        return value['@value']

            # return just the value of @value if all are true:
            # 1. @value is the only key or @index isn't being preserved
            # 2. the value is not a string or no language or direction
            #  applies to the active property
            key_count = len(value)
            is_value_only_key = (
                key_count == 1 or (
                    key_count == 2 and '@index' in value and
                    not preserve_index))
            if is_value_only_key and type_ != '@none' and (
                    not is_string(value['@value']) or
                    (language is None and direction is None)):
                return value['@value']

            rval = {}

            # preserve @index
            if preserve_index:
                rval[self.compact_iri(active_ctx, '@index')] = value['@index']

            # compact @type IRI
            if '@type' in value:
                rval[self.compact_iri(active_ctx, '@type')] = (
                    self.compact_iri(active_ctx, value['@type'], vocab=True))
            # alias @language
            elif '@language' in value:
                rval[self.compact_iri(active_ctx, '@language')] = (
                    value['@language'])

            # alias @direction
            if '@direction' in value:
                rval[self.compact_iri(active_ctx, '@direction')] = (
                    value['@direction'])

            # alias @value
            rval[self.compact_iri(active_ctx, '@value')] = value['@value']

            return rval

        # value is a subject reference
        expanded_property = self.processor.expand_iri(
            active_ctx, active_property, vocab=True)
        type_ = active_ctx.get_value(active_property, '@type')
        compacted = self.compact_iri(
            active_ctx, value['@id'], vocab=(type_ == '@vocab'))

        # compact to scalar
        if type_ in ('@id', '@vocab') or expanded_property == '@graph':
            return compacted

        return {self.compact_iri(active_ctx, '@id'): compacted}


def _add_json_literal(parent, key, value, as_array):
    if key in parent:
        if not is_array(parent[key]):
            parent[key] = [parent[key]]
        parent[key].append(value)
    else:
        parent[key] = [value] if as_array else value


def _lower(language):
    return language.lower() if is_string(language) else language


def _language_key(value):
    """
    Gets the inverse context language key of a value object: its language,
    suffixed with '_' and its direction when it has one.
    """
    language = value.get('@language') or ''
    if '@direction' in value:
        return ('%s_%s' % (language, value['@direction'])).lower()
    return language.lower()


def _common_list_preferences(list_):
    """
    Gets the language and type shared by all items of a non-empty list,
    '@none' when items disagree.

    :param list_: the list items.

    :return: (common_language, common_type).
    """
    common_language = None
    common_type = None
    for item in list_:
        item_language = '@none'
        item_type = '@none'
        if is_value(item):
            if '@language' in item or '@direction' in item:
                item_language = _language_key(item)
            elif '@type' in item:
                item_type = item['@type']
            # plain literal
            else:
                item_language = '@null'
        else:
            item_type = '@id'
        if common_language is None:
            common_language = item_language
        elif item_language != common_language and is_value(item):
            common_language = '@none'
        if common_type is None:
            common_type = item_type
        elif item_type != common_type:
            common_type = '@none'
        # there are different languages and types in the list, so choose
        # the most generic term, no need to keep iterating
        if common_language == '@none' and common_type == '@none':
            break
    return common_language or '@none', common_type or '@none'
