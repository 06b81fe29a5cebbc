"""
The JSON-LD expansion algorithm.

.. module:: ldproc.expansion
  :synopsis: JSON-LD expansion
"""

import logging

from .errors import JsonLdError
from .iri import is_blank_node_id
from .values import (
    FRAMING_KEYWORDS, Kind, add_value, arrayify, get_values, is_array,
    is_empty_object, is_graph, is_keyword, is_list, is_object, is_string,
    is_value, kind_of)

__all__ = ['Expander']

log = logging.getLogger(__name__)


class Expander(object):
    """
    Expands documents against active contexts built by a ContextProcessor.
    """

    def __init__(self, processor, options, on_key_dropped=None):
        """
        :param processor: the ContextProcessor of the current call.
        :param options: the expansion options:
          [isFrame] True to allow framing keywords and wildcards.
          [keepFreeFloatingNodes] True to keep top-level nodes that only
            have an @id.
        :param on_key_dropped: called with every key that does not expand to
          an IRI or a keyword.
        """
        self.processor = processor
        self.options = options
        self.on_key_dropped = on_key_dropped

    def expand(self, active_ctx, element, active_property=None):
        """
        Expands an element, always returning an array of node objects.

        :param active_ctx: the context to use.
        :param element: the element to expand.
        :param active_property: the property for the element, None for none.

        :return: the expanded array.
        """
        expanded = self._expand(
            active_ctx, active_property, element, self.options,
            inside_list=False)

        # optimize away @graph with no other properties
        if (is_object(expanded) and '@graph' in expanded and
                len(expanded) == 1):
            expanded = expanded['@graph']
        elif expanded is None:
            expanded = []
        return arrayify(expanded)

    def _expand_iri(self, active_ctx, value, base=False, vocab=False):
        return self.processor.expand_iri(
            active_ctx, value, base=base, vocab=vocab)

    def _expand(
            self, active_ctx, active_property, element, options,
            inside_list, from_map=False):
        """
        Recursively expands an element using the given context. Any context in
        the element will be removed.

        :param active_ctx: the context to use.
        :param active_property: the property for the element, None for none.
        :param element: the element to expand.
        :param options: the expansion options.
        :param inside_list: True if the property is a list, False if not.
        :param from_map: True if the element is a value of a container map.

        :return: the expanded value.
        """
        # nothing to expand
        if element is None:
            return element

        # disable framing if active_property is @default
        if active_property == '@default':
            options = dict(options, isFrame=False)

        definition = active_ctx.get_term_definition(active_property)
        property_scoped = definition is not None and '@context' in definition

        # recursively expand array
        if is_array(element):
            rval = []
            container = active_ctx.get_container(active_property)
            inside_list = inside_list or '@list' in container
            for e in element:
                e = self._expand(
                    active_ctx, active_property, e, options, inside_list,
                    from_map)
                if inside_list and (is_array(e) or is_list(e)):
                    # lists of lists are illegal
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; lists of lists are not '
                        'permitted.', 'jsonld.SyntaxError',
                        {'property': active_property}, code='list of lists')
                # drop None values
                if e is not None:
                    if is_array(e):
                        rval.extend(e)
                    else:
                        rval.append(e)
            return rval

        # handle scalars
        if not is_object(element):
            # drop free-floating scalars that are not in lists
            if (not inside_list and (active_property is None or
                    self._expand_iri(
                        active_ctx, active_property, vocab=True) == '@graph')):
                return None

            if property_scoped:
                active_ctx = self.processor.process(
                    active_ctx, definition['@context'],
                    base_url=definition['_base_url'],
                    override_protected=True)

            # expand element according to value expansion rules
            return self.expand_value(active_ctx, active_property, element)

        # revert non-propagated (type-scoped) contexts when entering a node
        if (active_ctx.previous is not None and not from_map and
                not self._is_value_or_reference(active_ctx, element)):
            active_ctx = active_ctx.previous

        if property_scoped:
            active_ctx = self.processor.process(
                active_ctx, definition['@context'],
                base_url=definition['_base_url'], override_protected=True)

        # if element has a context, process it
        if '@context' in element:
            active_ctx = self.processor.process(
                active_ctx, element['@context'])

        # apply type-scoped contexts in lexicographical order of the types
        type_scoped_ctx = active_ctx
        for key in sorted(element):
            if self._expand_iri(active_ctx, key, vocab=True) != '@type':
                continue
            types = sorted(
                t for t in arrayify(element[key]) if is_string(t))
            for type_ in types:
                type_definition = type_scoped_ctx.get_term_definition(type_)
                if (type_definition is not None and
                        '@context' in type_definition):
                    active_ctx = self.processor.process(
                        active_ctx, type_definition['@context'],
                        base_url=type_definition['_base_url'],
                        propagate=False)

        # expand the active property
        expanded_active_property = self._expand_iri(
            active_ctx, active_property, vocab=True)

        rval = {}
        self._expand_object(
            active_ctx, type_scoped_ctx, active_property,
            expanded_active_property, element, rval, options, inside_list)

        # get property count on expanded output
        count = len(rval)

        if '@value' in rval:
            rval = self._validate_value_object(active_ctx, rval, options)
        # convert @type to an array
        elif '@type' in rval and not is_array(rval['@type']):
            rval['@type'] = [rval['@type']]
        # handle @set and @list
        elif '@set' in rval or '@list' in rval:
            if count > 1 and not (count == 2 and '@index' in rval):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; if an element has the '
                    'property "@set" or "@list", then it can have at most '
                    'one other property, which is "@index".',
                    'jsonld.SyntaxError', {'element': rval},
                    code='invalid set or list object')
            # optimize away @set
            if '@set' in rval:
                rval = rval['@set']
                count = len(rval)
        # drop objects with only @language
        elif count == 1 and '@language' in rval:
            rval = None

        # drop certain top-level objects that do not occur in lists
        if (is_object(rval) and not options.get('keepFreeFloatingNodes') and
                not inside_list and
                (active_property is None or
                    expanded_active_property == '@graph')):
            # drop empty object or top-level @value/@list,
            # or object with only @id
            if (count == 0 or '@value' in rval or '@list' in rval or
                    (count == 1 and '@id' in rval)):
                rval = None

        return rval

    def _is_value_or_reference(self, active_ctx, element):
        expanded = [
            self._expand_iri(active_ctx, key, vocab=True) for key in element]
        return '@value' in expanded or expanded == ['@id']

    def _validate_value_object(self, active_ctx, rval, options):
        extra = set(rval) - {
            '@value', '@type', '@language', '@direction', '@index'}
        if extra:
            raise JsonLdError(
                'Invalid JSON-LD syntax; an element containing "@value" '
                'may only have "@type", "@language", "@direction" and '
                '"@index" properties.',
                'jsonld.SyntaxError', {'element': rval, 'keys': sorted(extra)},
                code='invalid value object')
        if '@type' in rval and ('@language' in rval or
                                '@direction' in rval):
            raise JsonLdError(
                'Invalid JSON-LD syntax; an element containing '
                '"@value" may not contain both "@type" and "@language" or '
                '"@direction".',
                'jsonld.SyntaxError', {'element': rval},
                code='invalid value object')

        types = get_values(rval, '@type')
        # JSON literals keep any value as is
        if types == ['@json'] and not active_ctx.is_1_0():
            return rval
        values = get_values(rval, '@value')

        # drop None @values
        if rval['@value'] is None:
            return None
        if (kind_of(rval['@value']) in (Kind.OBJECT, Kind.ARRAY) and
                not options.get('isFrame', False)):
            raise JsonLdError(
                'Invalid JSON-LD syntax; "@value" value must not be an '
                'object or an array.', 'jsonld.SyntaxError',
                {'value': rval['@value']}, code='invalid value object value')
        # if @language is present, @value must be a string
        if '@language' in rval and not all(
                is_string(v) or is_empty_object(v) for v in values):
            raise JsonLdError(
                'Invalid JSON-LD syntax; only strings may be '
                'language-tagged.', 'jsonld.SyntaxError',
                {'element': rval}, code='invalid language-tagged value')
        if not all(
                is_empty_object(t) or (
                    is_string(t) and ':' in t and
                    not is_blank_node_id(t)) for t in types):
            raise JsonLdError(
                'Invalid JSON-LD syntax; an element containing "@value" '
                'and "@type" must have an absolute IRI for the value '
                'of "@type".', 'jsonld.SyntaxError', {'element': rval},
                code='invalid typed value')
        return rval

    def _drop_key(self, key, expanded_property):
        log.debug(
            'Dropping key %r, it expands to %r which is neither an IRI '
            'nor a keyword.', key, expanded_property)
        if self.on_key_dropped is not None:
            self.on_key_dropped(key)

    def _expand_object(
            self, active_ctx, type_scoped_ctx, active_property,
            expanded_active_property, element, expanded_parent, options,
            inside_list):
        """
        Expand each key and value of element adding to result.

        :param active_ctx: the context to use.
        :param type_scoped_ctx: the context before type-scoped contexts were
          applied, used to expand @type values.
        :param active_property: the property for the element, None for none.
        :param expanded_active_property: the expansion of active_property
        :param element: the element to expand.
        :param expanded_parent: the expanded result into which to add values.
        :param options: the expansion options.
        :param inside_list: True if the property is a list, False if not.
        """
        nests = []
        for key, value in element.items():
            if key == '@context':
                continue

            # expand key to IRI
            expanded_property = self._expand_iri(
                active_ctx, key, vocab=True)

            # drop keys that aren't IRIs or keywords
            if (expanded_property is None or not (
                    ':' in expanded_property or
                    is_keyword(expanded_property))):
                self._drop_key(key, expanded_property)
                continue

            if is_keyword(expanded_property):
                if expanded_active_property == '@reverse':
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; a keyword cannot be used as '
                        'a @reverse property.',
                        'jsonld.SyntaxError', {'value': value},
                        code='invalid reverse property map')
                if (expanded_property in expanded_parent and
                        expanded_property != '@type'):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; colliding keywords detected.',
                        'jsonld.SyntaxError', {'keyword': expanded_property},
                        code='colliding keywords')
                if expanded_property == '@nest':
                    nests.append(key)
                else:
                    self._expand_keyword(
                        active_ctx, type_scoped_ctx, active_property,
                        expanded_active_property, key, expanded_property,
                        value, expanded_parent, options, inside_list)
                continue

            self._expand_property(
                active_ctx, key, expanded_property, value, expanded_parent,
                options)

        # expand each nested key
        for key in nests:
            for nv in arrayify(element[key]):
                if (not is_object(nv) or any(
                        self._expand_iri(active_ctx, k, vocab=True) ==
                        '@value' for k in nv)):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; nested value must be a node '
                        'object.', 'jsonld.SyntaxError', {'value': nv},
                        code='invalid @nest value')
                self._expand_object(
                    active_ctx, type_scoped_ctx, active_property,
                    expanded_active_property, nv, expanded_parent, options,
                    inside_list)

    def _expand_keyword(
            self, active_ctx, type_scoped_ctx, active_property,
            expanded_active_property, key, expanded_property, value,
            expanded_parent, options, inside_list):
        is_frame = options.get('isFrame', False)

        if expanded_property == '@id':
            _validate_id_value(value, is_frame)
            expanded_values = [
                v if is_object(v) else
                self._expand_iri(active_ctx, v, base=True)
                for v in arrayify(value)]
            add_value(
                expanded_parent, '@id', expanded_values,
                property_is_array=is_frame)

        elif expanded_property == '@type':
            _validate_type_value(value, is_frame)
            expanded_values = [
                self._expand_iri(type_scoped_ctx, v, vocab=True, base=True)
                if is_string(v) else v
                for v in arrayify(value)]
            add_value(
                expanded_parent, '@type', expanded_values,
                property_is_array=(is_frame or '@type' in expanded_parent))

        elif expanded_property == '@graph':
            if not (is_object(value) or is_array(value)):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; "@graph" value must be an '
                    'object or an array.', 'jsonld.SyntaxError',
                    {'value': value}, code='invalid @graph value')
            expanded_value = self._expand(
                active_ctx, '@graph', value, options, inside_list=False)
            add_value(
                expanded_parent, '@graph', arrayify(expanded_value),
                property_is_array=True)

        elif expanded_property == '@value':
            # JSON literals are checked once @type is known
            if is_frame:
                add_value(
                    expanded_parent, '@value', value, property_is_array=True)
            else:
                expanded_parent['@value'] = value

        elif expanded_property == '@language':
            if value is None:
                # null @language values expand as if they didn't exist
                return
            if not is_string(value) and not is_frame:
                raise JsonLdError(
                    'Invalid JSON-LD syntax; "@language" value must be '
                    'a string.', 'jsonld.SyntaxError', {'value': value},
                    code='invalid language-tagged string')
            # ensure language value is lowercase
            expanded_values = [
                v.lower() if is_string(v) else v for v in arrayify(value)]
            add_value(
                expanded_parent, '@language', expanded_values,
                property_is_array=is_frame)

        elif expanded_property == '@direction':
            if active_ctx.is_1_0():
                return
            if value not in ('ltr', 'rtl') and not (
                    is_frame and (is_empty_object(value) or
                                  is_array(value))):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; "@direction" value must be '
                    '"ltr" or "rtl".', 'jsonld.SyntaxError',
                    {'value': value}, code='invalid base direction')
            add_value(
                expanded_parent, '@direction', value,
                property_is_array=is_frame)

        elif expanded_property == '@index':
            if not is_string(value):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; "@index" value must be '
                    'a string.', 'jsonld.SyntaxError', {'value': value},
                    code='invalid @index value')
            expanded_parent['@index'] = value

        elif expanded_property == '@reverse':
            self._expand_reverse(
                active_ctx, value, expanded_parent, options)

        elif expanded_property in ('@list', '@set'):
            is_list_ = expanded_property == '@list'
            next_active_property = active_property
            if is_list_ and expanded_active_property == '@graph':
                next_active_property = None
            expanded_value = self._expand(
                active_ctx, next_active_property, value, options,
                inside_list=is_list_)
            if is_list_:
                if is_list(expanded_value):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; lists of lists are '
                        'not permitted.', 'jsonld.SyntaxError',
                        {'value': value}, code='list of lists')
                expanded_value = arrayify(expanded_value)
            elif expanded_value is None:
                expanded_value = []
            add_value(
                expanded_parent, expanded_property, expanded_value,
                property_is_array=True)

        elif expanded_property == '@default' and is_frame:
            # '@null' asks for an explicit null in the framed output
            if value == '@null':
                expanded_value = ['@null']
            else:
                expanded_value = self._expand(
                    active_ctx, '@default', value, options,
                    inside_list=False)
            add_value(
                expanded_parent, '@default',
                [] if expanded_value is None else arrayify(expanded_value),
                property_is_array=True)

        elif expanded_property in FRAMING_KEYWORDS and is_frame:
            add_value(
                expanded_parent, expanded_property, arrayify(value),
                property_is_array=True)

        else:
            log.debug('Ignoring keyword %s in expansion', expanded_property)

    def _expand_reverse(self, active_ctx, value, expanded_parent, options):
        if not is_object(value):
            raise JsonLdError(
                'Invalid JSON-LD syntax; "@reverse" value must be '
                'an object.', 'jsonld.SyntaxError', {'value': value},
                code='invalid @reverse value')

        expanded_value = self._expand(
            active_ctx, '@reverse', value, options, inside_list=False)
        if expanded_value is None:
            return

        # properties double-reversed
        if '@reverse' in expanded_value:
            for rproperty, rvalue in expanded_value['@reverse'].items():
                add_value(
                    expanded_parent, rproperty, rvalue,
                    property_is_array=True)

        # merge in all reversed properties
        for property, items in expanded_value.items():
            if property == '@reverse':
                continue
            reverse_map = expanded_parent.setdefault('@reverse', {})
            add_value(reverse_map, property, [], property_is_array=True)
            for item in items:
                if is_value(item) or is_list(item):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; "@reverse" '
                        'value must not be an @value or an @list',
                        'jsonld.SyntaxError',
                        {'value': expanded_value},
                        code='invalid reverse property value')
                add_value(
                    reverse_map, property, item, property_is_array=True)

    def _expand_property(
            self, active_ctx, key, expanded_property, value,
            expanded_parent, options):
        definition = active_ctx.get_term_definition(key)
        container = active_ctx.get_container(key)

        # container maps are expanded with the property-scoped context
        term_ctx = active_ctx
        if definition is not None and '@context' in definition:
            term_ctx = self.processor.process(
                active_ctx, definition['@context'],
                base_url=definition['_base_url'], override_protected=True)

        if active_ctx.get_value(key, '@type') == '@json':
            # JSON literals are kept as is, including null
            expanded_value = {'@value': value, '@type': '@json'}
        elif '@language' in container and is_object(value):
            expanded_value = self._expand_language_map(
                term_ctx, value, term_ctx.get_value(key, '@direction'))
        elif '@index' in container and is_object(value):
            expanded_value = self._expand_index_map(
                term_ctx, key, value, '@index', '@graph' in container,
                options, definition.get('@index', '@index'))
        elif '@id' in container and is_object(value):
            expanded_value = self._expand_index_map(
                term_ctx, key, value, '@id', '@graph' in container, options)
        elif '@type' in container and is_object(value):
            expanded_value = self._expand_index_map(
                term_ctx, key, value, '@type', False, options)
        else:
            # recursively expand value w/key as new active property
            expanded_value = self._expand(
                active_ctx, key, value, options, inside_list=False)

        if expanded_value is None:
            return

        # convert expanded value to @list if container specifies it
        if '@list' in container and not is_list(expanded_value):
            expanded_value = {'@list': arrayify(expanded_value)}

        # wrap each value in a simple graph object
        if ('@graph' in container and
                '@id' not in container and '@index' not in container):
            expanded_value = [
                {'@graph': arrayify(ev)} for ev in arrayify(expanded_value)]

        # merge in reverse properties
        if definition is not None and definition['reverse']:
            reverse_map = expanded_parent.setdefault('@reverse', {})
            for item in arrayify(expanded_value):
                if is_value(item) or is_list(item):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; "@reverse" value must '
                        'not be an @value or an @list.',
                        'jsonld.SyntaxError', {'value': expanded_value},
                        code='invalid reverse property value')
                add_value(
                    reverse_map, expanded_property, item,
                    property_is_array=True)
            return

        add_value(
            expanded_parent, expanded_property, expanded_value,
            property_is_array=True)

    def _expand_language_map(self, active_ctx, language_map, direction):
        """
        Expands a language map.

        :param active_ctx: the current active context.
        :param language_map: the language map to expand.
        :param direction: the base direction of the term, if any.

        :return: the expanded language map.
        """
        rval = []
        for key, values in sorted(language_map.items()):
            expanded_key = self._expand_iri(active_ctx, key, vocab=True)
            for item in arrayify(values):
                if item is None:
                    continue
                if not is_string(item):
                    raise JsonLdError(
                        'Invalid JSON-LD syntax; language map values must be '
                        'strings.', 'jsonld.SyntaxError',
                        {'languageMap': language_map},
                        code='invalid language map value')
                val = {'@value': item}
                if expanded_key != '@none':
                    val['@language'] = key.lower()
                if direction is not None:
                    val['@direction'] = direction
                rval.append(val)
        return rval

    def _expand_index_map(
            self, active_ctx, active_property, value, index_key, as_graph,
            options, property_index='@index'):
        """
        Expands an index, id or type map.

        :param active_ctx: the current active context.
        :param active_property: the property for the element.
        :param value: the object containing indexed values.
        :param index_key: '@index', '@id' or '@type'.
        :param as_graph: contents should form a named graph.
        :param options: the expansion options.
        :param property_index: the property holding the index of an @index
          map, '@index' for plain index maps.

        :return: the expanded values.
        """
        rval = []
        for k, v in sorted(value.items()):
            map_ctx = active_ctx
            if index_key == '@type':
                if map_ctx.previous is not None:
                    map_ctx = map_ctx.previous
                type_definition = active_ctx.get_term_definition(k)
                if (type_definition is not None and
                        '@context' in type_definition):
                    map_ctx = self.processor.process(
                        map_ctx, type_definition['@context'],
                        base_url=type_definition['_base_url'],
                        propagate=False)

            expanded_key = self._expand_iri(active_ctx, k, vocab=True)
            if index_key == '@id':
                expanded_index = self._expand_iri(active_ctx, k, base=True)
            elif index_key == '@type':
                expanded_index = self._expand_iri(
                    active_ctx, k, vocab=True, base=True)
            else:
                expanded_index = k

            items = self._expand(
                map_ctx, active_property, arrayify(v), options,
                inside_list=False, from_map=True)
            for item in items:
                if as_graph and not is_graph(item):
                    item = {'@graph': arrayify(item)}
                if expanded_key == '@none':
                    pass
                elif index_key == '@type':
                    item['@type'] = [expanded_index] + get_values(
                        item, '@type')
                elif index_key == '@index' and property_index != '@index':
                    self._add_property_index(
                        active_ctx, item, property_index, k)
                elif index_key not in item:
                    item[index_key] = expanded_index
                rval.append(item)
        return rval

    def _add_property_index(self, active_ctx, item, property_index, index):
        if is_value(item):
            raise JsonLdError(
                'Invalid JSON-LD syntax; a value object cannot be indexed '
                'by a property.', 'jsonld.SyntaxError', {'value': item},
                code='invalid value object')
        prop = self._expand_iri(active_ctx, property_index, vocab=True)
        indexed = self.expand_value(active_ctx, property_index, index)
        item[prop] = [indexed] + get_values(item, prop)

    def expand_value(self, active_ctx, active_property, value):
        """
        Expands the given value by using the coercion and keyword rules in the
        given context.

        :param active_ctx: the active context to use.
        :param active_property: the property the value is associated with.
        :param value: the value to expand.

        :return: the expanded value.
        """
        # nothing to expand
        if value is None:
            return None

        type_ = active_ctx.get_value(active_property, '@type')

        # do @id expansion
        if type_ == '@id' and is_string(value):
            return {'@id': self._expand_iri(active_ctx, value, base=True)}
        # do @id expansion w/vocab
        if type_ == '@vocab' and is_string(value):
            return {'@id': self._expand_iri(
                active_ctx, value, vocab=True, base=True)}

        rval = {'@value': value}

        # other type
        if type_ not in (None, '@id', '@vocab', '@none'):
            rval['@type'] = type_
        # check for language and direction tagging
        elif is_string(value):
            language = active_ctx.get_value(active_property, '@language')
            if language is not None:
                rval['@language'] = language
            direction = active_ctx.get_value(active_property, '@direction')
            if direction is not None:
                rval['@direction'] = direction

        return rval


def _validate_id_value(v, is_frame):
    if is_string(v):
        return
    if is_frame and (is_empty_object(v) or (
            is_array(v) and all(is_string(e) for e in v))):
        return
    raise JsonLdError(
        'Invalid JSON-LD syntax; "@id" value must be a string.',
        'jsonld.SyntaxError', {'value': v}, code='invalid @id value')


def _validate_type_value(v, is_frame):
    """
    Raises an exception if the given value is not a valid @type value.

    :param v: the value to check.
    :param is_frame: True to allow the wildcard and match-none forms.
    """
    if is_string(v):
        return
    if is_array(v) and all(
            is_string(e) or (is_frame and is_empty_object(e)) for e in v):
        return
    if is_frame and is_empty_object(v):
        return

    raise JsonLdError(
        'Invalid JSON-LD syntax; "@type" value must be a string or an array '
        'of strings.',
        'jsonld.SyntaxError', {'value': v}, code='invalid type value')
