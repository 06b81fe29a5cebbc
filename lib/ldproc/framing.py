"""
The JSON-LD framing algorithm.

Framing runs over the merge of all graphs of the node map. Matched nodes
are embedded wherever they are referenced (``@always``), except where a
node is already being embedded further up the same path; there a node
reference is emitted to break the cycle.

.. module:: ldproc.framing
  :synopsis: JSON-LD framing
"""

import copy
import logging

from .errors import JsonLdError
from .identifier_issuer import IdentifierIssuer
from .node_map import create_node_map, merge_node_map_graphs
from .values import (
    add_value, compare_values, get_values, is_array,
    is_empty_object, is_keyword, is_list, is_object, is_string,
    is_subject_reference, is_value)

__all__ = ['Framer', 'remove_preserve']

log = logging.getLogger(__name__)

# defaults of the framing flags
_FLAG_DEFAULTS = {
    'embed': '@always',
    'explicit': False,
    'omitDefault': False,
    'requireAll': True
}

# value object keys compared when matching a value against a value pattern
_VALUE_PATTERN_KEYS = ('@value', '@type', '@language', '@direction')


class Framer(object):
    """
    Frames expanded documents with expanded frames.
    """

    def __init__(self, options):
        """
        :param options: the framing options:
          [embed] default @embed flag: '@always' or '@never', True and
            False are accepted for those (default: '@always').
          [explicit] default @explicit flag (default: False).
          [requireAll] default @requireAll flag (default: True).
          [omitDefault] default @omitDefault flag (default: False).
          [pruneBlankNodeIdentifiers] remove blank node identifiers that
            are referenced only once (default: False).
        """
        self.options = options

    def frame(self, input_, frame):
        """
        Performs JSON-LD framing.

        :param input_: the expanded JSON-LD to frame.
        :param frame: the expanded JSON-LD frame to use.

        :return: the framed output, still in expanded form.
        """
        # produce a map of all graphs and name each bnode
        issuer = IdentifierIssuer('_:b')
        graph_map = {'@default': {}}
        create_node_map(input_, graph_map, '@default', issuer)
        graph_map['@merged'] = merge_node_map_graphs(graph_map)

        # create framing state
        state = {
            'graph': '@merged',
            'graphMap': graph_map,
            'graphStack': [],
            'subjectStack': [],
            'bnodeMap': {}
        }

        self._validate_frame(frame)

        # top-level matches follow the order of the @ids in the frame, if
        # any, otherwise node id order
        subjects = graph_map['@merged']
        frame_ids = [
            id_ for id_ in frame[0].get('@id', []) if is_string(id_)]
        if frame_ids:
            ordered = []
            for id_ in frame_ids:
                if id_ in subjects and id_ not in ordered:
                    ordered.append(id_)
        else:
            ordered = sorted(subjects)

        framed = []
        self._match_frame(state, ordered, frame, framed, None)

        if self.options.get('pruneBlankNodeIdentifiers', False):
            self._prune_blank_node_identifiers(state['bnodeMap'])
        return framed

    def _match_frame(self, state, subjects, frame, parent, property):
        """
        Frames subjects according to the given frame.

        :param state: the current framing state.
        :param subjects: the ids of the subjects to filter, in order.
        :param frame: the frame.
        :param parent: the parent subject or top-level array.
        :param property: the parent property, initialized to None.
        """
        # validate the frame
        self._validate_frame(frame)
        frame = frame[0]

        # get flags for current frame
        flags = {
            'embed': self._get_frame_flag(frame, 'embed'),
            'explicit': self._get_frame_flag(frame, 'explicit'),
            'requireAll': self._get_frame_flag(frame, 'requireAll')
        }

        graph = state['graphMap'][state['graph']]
        matches = [
            (id_, graph[id_]) for id_ in subjects
            if id_ in graph and
            self._filter_subject(state, graph[id_], frame, flags)]

        # add matches to output
        for id_, subject in matches:
            # start output for subject
            output = {'@id': id_}
            # keep track of objects having blank nodes
            if id_.startswith('_:'):
                add_value(
                    state['bnodeMap'], id_, output, property_is_array=True)

            # if embed is @never or the subject is already being embedded
            # on the current path, the subject cannot be embedded, just add
            # the reference
            if (flags['embed'] == '@never' or
                    (state['graph'], id_) in state['subjectStack']):
                _add_frame_output(parent, property, output)
                continue

            # push matching subject onto stack to enable circular embed
            # checks
            state['subjectStack'].append((state['graph'], id_))

            # subject is also the name of a graph
            if id_ in state['graphMap'] and '@graph' in frame:
                subframe = frame['@graph'][0] if frame['@graph'] else {}
                if not is_object(subframe):
                    subframe = {}
                if id_ not in ('@merged', '@default'):
                    state['graphStack'].append(state['graph'])
                    state['graph'] = id_
                    # recurse into graph
                    self._match_frame(
                        state, sorted(state['graphMap'][id_]), [subframe],
                        output, '@graph')
                    state['graph'] = state['graphStack'].pop()

            # iterate over subject properties in order
            for prop, objects in sorted(subject.items()):
                # copy keywords to output
                if is_keyword(prop):
                    output[prop] = copy.deepcopy(objects)

                    if prop == '@type':
                        # count bnode values of @type
                        for type_ in objects:
                            if type_.startswith('_:'):
                                add_value(
                                    state['bnodeMap'], type_, output,
                                    property_is_array=True)
                    continue

                # explicit is on and property isn't in frame, skip processing
                if flags['explicit'] and prop not in frame:
                    continue

                if frame.get(prop):
                    subframe = frame[prop]
                else:
                    subframe = self._create_implicit_frame(flags)

                # add objects
                for o in objects:
                    if is_list(o):
                        self._embed_list(
                            state, o, output, prop, subframe, flags)
                    elif is_subject_reference(o):
                        # recurse into subject reference
                        self._match_frame(
                            state, [o['@id']], subframe, output, prop)
                    elif any(_value_match(p, o) for p in subframe):
                        # include other values if they match a pattern
                        _add_frame_output(output, prop, copy.deepcopy(o))

            self._add_defaults(frame, output)

            # add output to parent
            _add_frame_output(parent, property, output)

            # pop matching subject from circular ref-checking stack
            state['subjectStack'].pop()

    def _embed_list(self, state, list_value, output, prop, subframe, flags):
        # add empty list
        list_ = {'@list': []}
        if '@index' in list_value:
            list_['@index'] = list_value['@index']
        _add_frame_output(output, prop, list_)

        # a list pattern applies its first item to every list member
        list_frame = None
        if is_list(subframe[0]) and subframe[0]['@list']:
            list_frame = subframe[0]['@list'][:1]
        if not list_frame or not is_object(list_frame[0]):
            list_frame = self._create_implicit_frame(flags)

        for item in list_value['@list']:
            if is_subject_reference(item):
                # recurse into subject reference
                self._match_frame(
                    state, [item['@id']], list_frame, list_, '@list')
            else:
                # include other values automatically
                _add_frame_output(list_, '@list', copy.deepcopy(item))

    def _add_defaults(self, frame, output):
        """
        Adds @preserve defaults for the properties of the frame the output
        does not have, unless @omitDefault is on.
        """
        for prop in sorted(frame):
            # skip keywords
            if is_keyword(prop):
                continue
            # if omit default is off, then include default values for
            # properties that appear in the next frame but are not in the
            # matching subject
            next_ = frame[prop][0] if frame[prop] else {}
            if not is_object(next_):
                next_ = {}
            omit_default_on = self._get_frame_flag(next_, 'omitDefault')
            if not omit_default_on and prop not in output:
                preserve = ['@null']
                if next_.get('@default'):
                    preserve = copy.deepcopy(next_['@default'])
                output[prop] = [{'@preserve': preserve}]

    def _create_implicit_frame(self, flags):
        """
        Creates an implicit frame when recursing through subject matches. If
        a frame doesn't have an explicit frame for a particular property, then
        a wildcard child frame will be created that uses the same flags that
        the parent frame used.

        :param flags: the current framing flags.

        :return: the implicit frame.
        """
        return [{'@' + key: [flags[key]] for key in flags}]

    def _get_frame_flag(self, frame, name):
        """
        Gets the frame flag value for the given flag name.

        :param frame: the frame.
        :param name: the flag name.

        :return: the flag value.
        """
        rval = frame.get(
            '@' + name, [self.options.get(name, _FLAG_DEFAULTS[name])])
        rval = rval[0] if is_array(rval) and rval else rval
        if name != 'embed':
            return bool(rval)

        # True => '@always', False => '@never'
        if rval is True or rval is None:
            rval = '@always'
        elif rval is False:
            rval = '@never'
        elif rval == '@last':
            log.warning(
                'The "@last" embed value is deprecated, embedding with '
                '"@always" instead.')
            rval = '@always'
        if rval not in ('@always', '@never'):
            raise JsonLdError(
                'Invalid JSON-LD syntax; invalid value of @embed.',
                'jsonld.SyntaxError', {'frame': frame},
                code='invalid embed value')
        return rval

    def _validate_frame(self, frame):
        """
        Validates a JSON-LD frame, throwing an exception if the frame is
        invalid.

        :param frame: the frame to validate.
        """
        if (not is_array(frame) or len(frame) != 1 or
                not is_object(frame[0])):
            raise JsonLdError(
                'Invalid JSON-LD syntax; a JSON-LD frame must be a single '
                'object.', 'jsonld.SyntaxError', {'frame': frame},
                code='invalid frame')
        if '@reverse' in frame[0]:
            raise JsonLdError(
                'Invalid JSON-LD syntax; @reverse is not supported in '
                'frames.', 'jsonld.SyntaxError', {'frame': frame},
                code='invalid frame')
        ids = frame[0].get('@id', [])
        if not all(is_string(id_) or is_empty_object(id_) for id_ in ids):
            raise JsonLdError(
                'Invalid JSON-LD syntax; invalid @id in frame.',
                'jsonld.SyntaxError', {'frame': frame},
                code='invalid frame')

    def _filter_subject(self, state, subject, frame, flags):
        """
        Returns True if the given subject matches the given frame.

        ``@id`` and ``@type`` restrict the candidates: a specific ``@id``
        must name the subject, and a specific ``@type`` must share a type
        with it. An empty ``@type`` array only admits untyped nodes and
        ``{}`` only typed ones.

        The non-keyword properties of the frame are then matched by duck
        typing: every one of them must match when ``@requireAll`` is on,
        at least one otherwise. A frame without such properties is a
        wildcard.

        :param state: the current framing state.
        :param subject: the subject to check.
        :param frame: the frame to check.
        :param flags: the frame flags.

        :return: True if the subject matches, False if not.
        """
        ids = [id_ for id_ in frame.get('@id', []) if is_string(id_)]
        if ids and subject['@id'] not in ids:
            return False

        if '@type' in frame:
            patterns = frame['@type']
            types = subject.get('@type', [])
            if len(patterns) == 0:
                # match nodes without a type
                if types:
                    return False
            elif is_empty_object(patterns[0]):
                # match nodes with any type
                if not types:
                    return False
            elif not any(type_ in patterns for type_ in types):
                return False

        wildcard = True
        matches_some = False
        for key, patterns in sorted(frame.items()):
            if is_keyword(key):
                continue

            # no longer a wildcard pattern if frame has any non-keyword
            # properties
            wildcard = False

            node_values = get_values(subject, key)
            pattern = patterns[0] if patterns else None
            if pattern is not None:
                self._validate_frame([pattern])

            if pattern is None:
                # an empty frame value only matches missing properties
                match_this = len(node_values) == 0
            elif not node_values and '@default' in pattern:
                # a missing property is filled in by its default
                match_this = True
            elif _is_explicit_pattern(pattern):
                match_this = all(
                    self._node_has_value(state, p, node_values)
                    for p in patterns)
            else:
                # wildcard or node pattern, match on presence
                match_this = len(node_values) > 0

            if not match_this and flags['requireAll']:
                return False

            matches_some = matches_some or match_this

        # return true if wildcard or subject matches some properties
        return wildcard or matches_some

    def _node_has_value(self, state, pattern, node_values):
        """
        Returns True if one of the node values equals the explicit value
        pattern.
        """
        if is_list(pattern):
            return any(
                is_list(v) and self._list_match(pattern['@list'], v['@list'])
                for v in node_values)
        return any(_item_match(pattern, v) for v in node_values)

    def _list_match(self, pattern, items):
        return len(pattern) == len(items) and all(
            _item_match(p, item) for p, item in zip(pattern, items))

    def _prune_blank_node_identifiers(self, bnode_map):
        """
        Removes the @id of blank nodes that occur only once in the output.

        :param bnode_map: blank node id to the output objects using it.
        """
        for id_, outputs in bnode_map.items():
            if len(outputs) != 1:
                continue
            output = outputs[0]
            # keep references, they would lose their meaning
            if output.get('@id') == id_ and len(output) > 1:
                del output['@id']


def _is_explicit_pattern(pattern):
    """
    Returns True if a frame value names explicit values instead of acting as
    a wildcard or node pattern.
    """
    if is_value(pattern) or is_list(pattern):
        return True
    ids = [id_ for id_ in get_values(pattern, '@id') if is_string(id_)]
    return len(ids) > 0


def _item_match(pattern, value):
    if is_value(pattern):
        return is_value(value) and _value_match(pattern, value)
    ids = [id_ for id_ in get_values(pattern, '@id') if is_string(id_)]
    if ids:
        return is_object(value) and value.get('@id') in ids
    # node pattern matches any node
    return is_object(value) and not is_value(value)


def _value_match(pattern, value):
    """
    Value matches if it is a value and matches the value pattern

    - `pattern` is empty
    - @values are the same, or `pattern[@value]` is a wildcard,
    - @types are the same or `value[@type]` is not None
      and `pattern[@type]` is `{}` or `value[@type]` is None
      and `pattern[@type]` is None or `[]`, and
    - @languages and @directions compare like @types

    :param pattern: used to match value.
    :param value: to check.

    :return: True if the value matches.
    """
    if not any(key in pattern for key in _VALUE_PATTERN_KEYS):
        return True
    if not is_value(value):
        return False
    for key in _VALUE_PATTERN_KEYS:
        expected = get_values(pattern, key)
        actual = value.get(key)
        if not expected:
            if actual is not None:
                return False
        elif is_empty_object(expected[0]):
            if actual is None:
                return False
        elif not any(compare_values(actual, e) for e in expected):
            return False
    return True


def _add_frame_output(parent, property, output):
    """
    Adds framing output to the given parent.

    :param parent: the parent to add to.
    :param property: the parent property.
    :param output: the output to add.
    """
    if is_object(parent):
        add_value(parent, property, output, property_is_array=True)
    else:
        parent.append(output)


def remove_preserve(compactor, active_ctx, input_):
    """
    Removes the @preserve keywords as the last step of the framing
    algorithm.

    :param compactor: the Compactor used to compact the framed output.
    :param active_ctx: the active context used to compact the input.
    :param input_: the framed, compacted output.

    :return: the resulting output.
    """
    # recurse through arrays
    if is_array(input_):
        output = []
        for e in input_:
            result = remove_preserve(compactor, active_ctx, e)
            # drop Nones from arrays
            if result is not None:
                output.append(result)
        return output

    if not is_object(input_):
        return input_

    # remove @preserve
    if '@preserve' in input_:
        if input_['@preserve'] == '@null':
            return None
        return input_['@preserve']

    # skip @values
    if is_value(input_):
        return input_

    # recurse through @lists
    if is_list(input_):
        input_['@list'] = remove_preserve(
            compactor, active_ctx, input_['@list'])
        return input_

    # recurse through properties
    graph_alias = compactor.compact_iri(active_ctx, '@graph')
    compact_arrays = compactor.options.get('compactArrays', True)
    for prop, v in list(input_.items()):
        result = remove_preserve(compactor, active_ctx, v)
        container = active_ctx.get_container(prop)
        if (compact_arrays and is_array(result) and len(result) == 1 and
                '@set' not in container and '@list' not in container and
                prop != graph_alias):
            result = result[0]
        input_[prop] = result
    return input_
