"""
Conversion between expanded JSON-LD and RDF datasets.

A dataset is a list of :class:`Quad` objects whose terms are
:class:`IRIRef`, :class:`BlankNode` and :class:`Literal` tuples. Blank node
values carry their ``_:`` prefix.

.. module:: ldproc.rdf
  :synopsis: JSON-LD to RDF and RDF to JSON-LD conversion
"""

import json
import logging
import math
import re
from collections import namedtuple

from .errors import JsonLdError
from .identifier_issuer import IdentifierIssuer
from .iri import is_absolute_iri
from .node_map import create_node_map
from .values import (
    RDF_FIRST, RDF_JSON, RDF_LANGSTRING, RDF_LIST, RDF_NIL, RDF_REST,
    RDF_TYPE, XSD_BOOLEAN, XSD_DOUBLE, XSD_INTEGER, XSD_STRING, Kind,
    add_value, has_value, is_array, is_keyword, is_list, is_object,
    is_subject_reference, is_value, kind_of)

__all__ = [
    'IRIRef', 'BlankNode', 'Literal', 'Quad', 'to_rdf', 'from_rdf']

log = logging.getLogger(__name__)

IRIRef = namedtuple('IRIRef', ['value'])
BlankNode = namedtuple('BlankNode', ['value'])
Literal = namedtuple(
    'Literal', ['value', 'datatype', 'language', 'direction'],
    defaults=(None, None))
Quad = namedtuple(
    'Quad', ['subject', 'predicate', 'object', 'graph'], defaults=(None,))

# lexical forms converted by useNativeTypes
_INTEGER = re.compile(r'^[+-]?[0-9]+$')
_DOUBLE = re.compile(
    r'^(\+|-)?([0-9]+(\.[0-9]*)?|\.[0-9]+)([Ee](\+|-)?[0-9]+)?$')


def _node(id_):
    return BlankNode(id_) if id_.startswith('_:') else IRIRef(id_)


def to_rdf(input_, options=None):
    """
    Outputs the RDF dataset found in the given expanded JSON-LD.

    :param input_: the expanded JSON-LD input.
    :param [options]: the options to use.
      [produceGeneralizedRdf] true to output generalized RDF, false
        to produce only standard RDF (default: false).
      [graph] true to put the default graph's quads into a named graph
        with a fresh blank node name (default: false).

    :return: the list of quads.
    """
    options = options or {}

    # create node map for default graph (and any named graphs)
    issuer = IdentifierIssuer('_:b')
    node_map = {'@default': {}}
    create_node_map(input_, node_map, '@default', issuer)
    default_term = None
    if options.get('graph', False):
        default_term = BlankNode(issuer.get_id())

    rval = []
    for graph_name, graph in sorted(node_map.items()):
        if graph_name == '@default':
            graph_term = default_term
        elif graph_name.startswith('_:') or is_absolute_iri(graph_name):
            graph_term = _node(graph_name)
        else:
            # skip relative IRIs as graph names
            log.debug('Skipping graph with relative name %s', graph_name)
            continue
        rval.extend(_graph_to_rdf(graph, graph_term, issuer, options))
    return rval


def _graph_to_rdf(graph, graph_term, issuer, options):
    """
    Creates the quads for the given graph.

    :param graph: the graph to create quads for.
    :param graph_term: the graph name term, None for the default graph.
    :param issuer: the IdentifierIssuer for issuing blank node identifiers.
    :param options: the RDF serialization options.

    :return: the list of quads for the given graph.
    """
    rval = []
    for id_, node in sorted(graph.items()):
        # skip relative IRI subjects
        if not (id_.startswith('_:') or is_absolute_iri(id_)):
            continue
        subject = _node(id_)

        for property, items in sorted(node.items()):
            if property == '@type':
                property = RDF_TYPE
            elif is_keyword(property):
                continue

            # RDF predicate
            if property.startswith('_:'):
                # skip bnode predicates unless producing generalized RDF
                if not options.get('produceGeneralizedRdf', False):
                    continue
                predicate = BlankNode(property)
            elif is_absolute_iri(property):
                predicate = IRIRef(property)
            else:
                # skip relative IRI predicates
                continue

            for item in items:
                # convert @list to triples
                if is_list(item):
                    _list_to_rdf(
                        item['@list'], issuer, subject, predicate,
                        graph_term, rval)
                    continue
                # convert value or node object to triple
                object_ = _object_to_rdf(item)
                # skip None objects (they are relative IRIs)
                if object_ is not None:
                    rval.append(Quad(subject, predicate, object_, graph_term))
    return rval


def _list_to_rdf(list_, issuer, subject, predicate, graph_term, quads):
    """
    Converts a @list value into a linked list of blank node RDF quads
    (an RDF collection).

    :param list_: the @list value.
    :param issuer: the IdentifierIssuer for issuing blank node identifiers.
    :param subject: the subject for the head of the list.
    :param predicate: the predicate for the head of the list.
    :param graph_term: the graph name term, None for the default graph.
    :param quads: the list of quads to append to.
    """
    first = IRIRef(RDF_FIRST)
    rest = IRIRef(RDF_REST)

    for item in list_:
        blank_node = BlankNode(issuer.get_id())
        quads.append(Quad(subject, predicate, blank_node, graph_term))

        subject = blank_node
        predicate = first
        object_ = _object_to_rdf(item)
        # skip None objects (they are relative IRIs)
        if object_ is not None:
            quads.append(Quad(subject, predicate, object_, graph_term))

        predicate = rest

    quads.append(Quad(subject, predicate, IRIRef(RDF_NIL), graph_term))


def _object_to_rdf(item):
    """
    Converts a JSON-LD value object to an RDF literal or a JSON-LD string
    or node object to an RDF resource.

    :param item: the JSON-LD value or node object.

    :return: the RDF literal or RDF resource, None for relative IRIs.
    """
    if not is_value(item):
        id_ = item['@id'] if is_object(item) else item
        if not (id_.startswith('_:') or is_absolute_iri(id_)):
            return None
        return _node(id_)

    value = item['@value']
    datatype = item.get('@type')

    if datatype == '@json':
        return Literal(_canonical_json(value), RDF_JSON)

    # convert to XSD datatypes as appropriate
    kind = kind_of(value)
    if kind is Kind.BOOLEAN:
        return Literal(
            'true' if value else 'false', datatype or XSD_BOOLEAN)

    if kind in (Kind.INTEGER, Kind.DOUBLE):
        if not math.isfinite(value):
            raise JsonLdError(
                'Invalid JSON-LD syntax; a number must be finite to be '
                'converted to an RDF literal.', 'jsonld.RdfError',
                {'value': item}, code='invalid RDF literal value')
        if (kind is Kind.DOUBLE and not value.is_integer()) or (
                abs(value) >= 1e21) or datatype == XSD_DOUBLE:
            return Literal(_canonical_double(value), datatype or XSD_DOUBLE)
        return Literal('%d' % value, datatype or XSD_INTEGER)

    if kind is not Kind.STRING:
        raise JsonLdError(
            'Invalid JSON-LD syntax; @value must be a string, number or '
            'boolean to be converted to an RDF literal.', 'jsonld.RdfError',
            {'value': item}, code='invalid RDF literal value')

    if '@language' in item:
        return Literal(
            value, datatype or RDF_LANGSTRING, item['@language'],
            item.get('@direction'))
    if item.get('@direction'):
        return Literal(
            value, datatype or XSD_STRING, None, item['@direction'])
    return Literal(value, datatype or XSD_STRING)


def _canonical_double(value):
    """
    Formats a number in the canonical xsd:double lexical form, with no
    trailing mantissa zeros and no '+' or leading zeros in the exponent.
    """
    return re.sub(
        r'(\d)0*E\+?(-?)0*(\d)', r'\1E\2\3', '%1.15E' % value)


def _canonical_json(value):
    """
    Serializes a JSON literal in canonical form: no whitespace, object keys
    sorted by their UTF-16 code units and numbers written the way
    ECMAScript writes them (RFC 8785).

    :param value: the JSON value.

    :return: the canonical JSON text.
    """
    kind = kind_of(value)
    if kind is Kind.NULL:
        return 'null'
    if kind is Kind.BOOLEAN:
        return 'true' if value else 'false'
    if kind is Kind.STRING:
        return json.dumps(value, ensure_ascii=False)
    if kind is Kind.ARRAY:
        return '[' + ','.join(_canonical_json(v) for v in value) + ']'
    if kind is Kind.OBJECT:
        keys = sorted(value, key=lambda k: k.encode('utf-16-be'))
        return '{' + ','.join(
            json.dumps(k, ensure_ascii=False) + ':' +
            _canonical_json(value[k]) for k in keys) + '}'

    if not math.isfinite(value):
        raise JsonLdError(
            'Invalid JSON literal; numbers must be finite.',
            'jsonld.RdfError', {'value': value},
            code='invalid JSON literal')
    if kind is Kind.INTEGER or (value.is_integer() and abs(value) < 1e21):
        return '%d' % value
    mantissa, _, exponent = repr(value).partition('e')
    if not exponent:
        return mantissa
    exponent = int(exponent)
    return '%se%s%d' % (mantissa, '+' if exponent > 0 else '-', abs(exponent))


def _validate_quad(quad, options):
    """
    Raises an 'invalid quad' error for quads that cannot be part of an RDF
    dataset.
    """
    valid = (
        isinstance(quad, Quad) and
        isinstance(quad.subject, (IRIRef, BlankNode)) and
        isinstance(quad.object, (IRIRef, BlankNode, Literal)) and
        (quad.graph is None or isinstance(quad.graph, (IRIRef, BlankNode))))
    if valid:
        predicate_types = (IRIRef, BlankNode) if options.get(
            'produceGeneralizedRdf', False) else (IRIRef,)
        valid = isinstance(quad.predicate, predicate_types)
    if not valid:
        raise JsonLdError(
            'Invalid RDF dataset; quads must have an IRI or blank node '
            'subject, an IRI predicate, an IRI, blank node or literal '
            'object and an IRI or blank node graph name.',
            'jsonld.RdfError', {'quad': quad}, code='invalid quad')


def from_rdf(quads, options=None):
    """
    Converts an RDF dataset to expanded JSON-LD.

    :param quads: the list of quads.
    :param [options]: the options to use.
      [useRdfType] True to keep rdf:type as a property instead of
        converting it to @type (default: False).
      [useNativeTypes] True to convert XSD booleans, integers and doubles
        to native JSON values (default: False).

    :return: the expanded JSON-LD output.
    """
    options = options or {}
    use_rdf_type = options.get('useRdfType', False)
    use_native_types = options.get('useNativeTypes', False)

    default_graph = {}
    graph_map = {'@default': default_graph}
    referenced_once = {}
    nil_usages = {}

    for quad in quads:
        _validate_quad(quad, options)

        name = '@default' if quad.graph is None else quad.graph.value
        if name != '@default' and name not in default_graph:
            default_graph[name] = {'@id': name}
        node_map = graph_map.setdefault(name, {})
        once = referenced_once.setdefault(name, {})

        # get subject, predicate, object
        s = quad.subject.value
        p = quad.predicate.value
        o = quad.object

        node = node_map.setdefault(s, {'@id': s})

        object_is_id = not isinstance(o, Literal)
        if object_is_id and o.value not in node_map:
            node_map[o.value] = {'@id': o.value}

        if p == RDF_TYPE and not use_rdf_type and object_is_id:
            add_value(
                node, '@type', o.value,
                property_is_array=True, allow_duplicate=False)
            continue

        value = _rdf_to_object(o, use_native_types)
        # duplicate values collapse
        if has_value(node, p, value):
            continue
        add_value(node, p, value, property_is_array=True)

        # object may be an RDF list/partial list node but we can't know
        # easily until all quads are read
        if object_is_id:
            usage = {'node': node, 'property': p, 'value': value}
            # track rdf:nil uniquely per graph
            if o.value == RDF_NIL:
                nil_usages.setdefault(name, []).append(usage)
            # object referenced more than once
            elif o.value in once:
                once[o.value] = False
            # track single reference
            else:
                once[o.value] = usage

    # convert linked lists to @list arrays
    for name, graph_object in graph_map.items():
        for usage in nil_usages.get(name, []):
            _convert_list(graph_object, referenced_once[name], usage)

    result = []
    for subject, node in sorted(default_graph.items()):
        if subject in graph_map and subject != '@default':
            graph = node['@graph'] = []
            for s, n in sorted(graph_map[subject].items()):
                # only add full subjects to top-level
                if not is_subject_reference(n):
                    graph.append(n)
        # only add full subjects to top-level
        if not is_subject_reference(node):
            result.append(node)

    return result


def _is_list_node(node, referenced_once):
    """
    Returns True if the node is a well-formed list node: a blank node
    referenced only once, with exactly one rdf:first and one rdf:rest value
    and no other properties than an optional rdf:List @type.
    """
    if not (node['@id'].startswith('_:') and
            is_object(referenced_once.get(node['@id']))):
        return False
    first = node.get(RDF_FIRST)
    rest = node.get(RDF_REST)
    if not (is_array(first) and len(first) == 1 and
            is_array(rest) and len(rest) == 1):
        return False
    extra = set(node) - {'@id', RDF_FIRST, RDF_REST}
    return not extra or (
        extra == {'@type'} and node['@type'] == [RDF_LIST])


def _convert_list(graph_object, referenced_once, usage):
    """
    Walks an RDF collection backwards from its rdf:nil usage and replaces
    it with a @list object where it is well-formed.

    :param graph_object: the node map of the graph.
    :param referenced_once: node id to its single usage, False for nodes
      referenced more than once.
    :param usage: the usage of rdf:nil ending the collection.
    """
    node = usage['node']
    property = usage['property']
    head = usage['value']
    list_ = []
    list_nodes = []

    while property == RDF_REST and _is_list_node(node, referenced_once):
        list_.append(node[RDF_FIRST][0])
        list_nodes.append(node['@id'])

        # get next node, moving backwards through list
        usage = referenced_once[node['@id']]
        node = usage['node']
        property = usage['property']
        head = usage['value']

        # if node is not a blank node, then list head found
        if not node['@id'].startswith('_:'):
            break

    # the list is nested in another list
    if property == RDF_FIRST:
        # empty list, can't convert rdf:nil to a @list object because it
        # would result in a list of lists which isn't supported
        if head['@id'] == RDF_NIL:
            log.debug('Keeping rdf:nil nested in list node %s', node['@id'])
            return

        # preserve list head
        head = graph_object[head['@id']][RDF_REST][0]
        list_.pop()
        list_nodes.pop()
        log.debug(
            'Converting the tail of a list nested in list node %s',
            node['@id'])

    # transform list into @list object
    del head['@id']
    list_.reverse()
    head['@list'] = list_
    for id_ in list_nodes:
        graph_object.pop(id_, None)
    log.debug(
        'Converted RDF collection with %d item(s) on %s',
        len(list_), property)


def _rdf_to_object(o, use_native_types):
    """
    Converts an RDF quad object to a JSON-LD object.

    :param o: the RDF quad object to convert.
    :param use_native_types: True to output native types, False not to.

    :return: the JSON-LD object.
    """
    # convert IRI/BlankNode object to JSON-LD
    if not isinstance(o, Literal):
        return {'@id': o.value}

    # convert literal object to JSON-LD
    rval = {'@value': o.value}

    if o.datatype == RDF_JSON and o.language is None:
        try:
            rval['@value'] = json.loads(o.value)
        except ValueError as cause:
            raise JsonLdError(
                'Invalid JSON literal; the lexical form is not JSON.',
                'jsonld.RdfError', {'literal': o.value},
                code='invalid JSON literal', cause=cause)
        rval['@type'] = '@json'
        return rval

    # add language and direction
    if o.language is not None or o.direction is not None:
        if o.language is not None:
            rval['@language'] = o.language
        if o.direction is not None:
            rval['@direction'] = o.direction
        return rval

    type_ = o.datatype
    # use native types for certain xsd types
    if use_native_types:
        if type_ == XSD_BOOLEAN and o.value in ('true', 'false'):
            rval['@value'] = o.value == 'true'
            return rval
        if type_ == XSD_INTEGER and _INTEGER.match(o.value):
            rval['@value'] = int(o.value)
            return rval
        if type_ == XSD_DOUBLE and _DOUBLE.match(o.value):
            rval['@value'] = float(o.value)
            return rval

    if type_ != XSD_STRING:
        rval['@type'] = type_
    return rval
