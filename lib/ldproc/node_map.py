"""
Node maps: expanded documents flattened into graph name -> node id -> node.

All nested node objects are replaced by ``{'@id': ...}`` references into the
map, blank nodes are relabelled through one :class:`IdentifierIssuer` per
call.

.. module:: ldproc.node_map
  :synopsis: JSON-LD node map generation and flattening
"""

import copy

from .errors import JsonLdError
from .identifier_issuer import IdentifierIssuer
from .values import (
    add_value, is_array, is_bnode, is_keyword, is_list, is_object,
    is_subject, is_subject_reference, is_value)

__all__ = ['create_node_map', 'merge_node_map_graphs', 'flatten']


def create_node_map(input_, graphs, graph, issuer, name=None, list_=None):
    """
    Recursively flattens the subjects in the given JSON-LD expanded
    input into a node map.

    :param input_: the JSON-LD expanded input.
    :param graphs: a map of graph name to subject map.
    :param graph: the name of the current graph.
    :param issuer: the IdentifierIssuer for issuing blank node identifiers.
    :param name: the name assigned to the current input if it is a bnode.
    :param list_: the list to append to, None for none.
    """
    # recurse through array
    if is_array(input_):
        for e in input_:
            create_node_map(e, graphs, graph, issuer, None, list_)
        return

    # add non-object or value to list
    if not is_object(input_) or is_value(input_):
        if list_ is not None:
            list_.append(input_)
        return

    # a list nested in a list cannot happen in expanded input, but lists
    # reached through an array are kept in place
    if is_list(input_):
        nested = []
        create_node_map(input_['@list'], graphs, graph, issuer, name, nested)
        if list_ is not None:
            list_.append({'@list': nested})
        return

    # Note: At this point, input must be a subject.

    # @type blank nodes are labeled before the subject
    types = [issuer.relabel(t) for t in input_.get('@type', [])]

    # get identifier for subject
    if name is None:
        name = input_.get('@id')
        if is_bnode(input_):
            name = issuer.get_id(name)

    # add subject reference to list
    if list_ is not None:
        list_.append({'@id': name})

    # create new subject or merge into existing one
    subject = graphs.setdefault(graph, {}).setdefault(name, {'@id': name})

    if types:
        add_value(
            subject, '@type', types,
            property_is_array=True, allow_duplicate=False)

    for property, objects in sorted(input_.items()):
        if property in ('@id', '@type'):
            continue

        # handle reverse properties
        if property == '@reverse':
            referenced_node = {'@id': name}
            for reverse_property, items in sorted(objects.items()):
                for item in items:
                    item_name = item.get('@id')
                    if is_bnode(item):
                        item_name = issuer.get_id(item_name)
                    create_node_map(item, graphs, graph, issuer, item_name)
                    add_value(
                        graphs[graph][item_name], reverse_property,
                        referenced_node,
                        property_is_array=True, allow_duplicate=False)
            continue

        # recurse into graph
        if property == '@graph':
            graphs.setdefault(name, {})
            create_node_map(objects, graphs, name, issuer)
            continue

        # copy non-@type keywords
        if is_keyword(property):
            if (property == '@index' and '@index' in subject and
                    subject['@index'] != objects):
                raise JsonLdError(
                    'Invalid JSON-LD syntax; conflicting @index property '
                    'detected.', 'jsonld.SyntaxError',
                    {'subject': subject}, code='conflicting indexes')
            subject[property] = objects
            continue

        # bnode properties are relabeled like subjects
        property = issuer.relabel(property)

        # ensure property is added for empty arrays
        if len(objects) == 0:
            add_value(subject, property, [], property_is_array=True)
            continue

        for o in objects:
            # handle embedded subject or subject reference
            if is_subject(o) or is_subject_reference(o):
                id_ = o.get('@id')
                if is_bnode(o):
                    id_ = issuer.get_id(id_)

                # add reference and recurse
                add_value(
                    subject, property, {'@id': id_},
                    property_is_array=True, allow_duplicate=False)
                create_node_map(o, graphs, graph, issuer, id_)
            # handle @list
            elif is_list(o):
                olist = []
                create_node_map(o['@list'], graphs, graph, issuer, name, olist)
                list_value = {'@list': olist}
                if '@index' in o:
                    list_value['@index'] = o['@index']
                add_value(
                    subject, property, list_value,
                    property_is_array=True, allow_duplicate=False)
            # handle @value
            else:
                add_value(
                    subject, property, o,
                    property_is_array=True, allow_duplicate=False)


def merge_node_map_graphs(graphs):
    """
    Merge separate named graphs into a single merged graph including
    all nodes from the default graph and named graphs.

    :param graphs: a map of graph name to subject map.

    :return: merged graph map.
    """
    merged = {}
    for name, graph in sorted(graphs.items()):
        for id_, node in sorted(graph.items()):
            merged_node = merged.setdefault(id_, {'@id': id_})
            for property, values in sorted(node.items()):
                if property == '@type':
                    add_value(
                        merged_node, '@type', copy.deepcopy(values),
                        property_is_array=True, allow_duplicate=False)
                elif is_keyword(property):
                    # copy keywords
                    merged_node[property] = copy.deepcopy(values)
                else:
                    # merge objects
                    add_value(
                        merged_node, property, copy.deepcopy(values),
                        property_is_array=True, allow_duplicate=False)
    return merged


def flatten(input_, issuer=None):
    """
    Performs JSON-LD flattening.

    :param input_: the expanded JSON-LD to flatten.
    :param issuer: the IdentifierIssuer to use, a fresh one by default.

    :return: the flattened JSON-LD output.
    """
    # produce a map of all subjects and label each bnode
    issuer = issuer or IdentifierIssuer('_:b')
    graphs = {'@default': {}}
    create_node_map(input_, graphs, '@default', issuer)

    # add all non-default graphs to default graph
    default_graph = graphs['@default']
    for graph_name, node_map in sorted(graphs.items()):
        if graph_name == '@default':
            continue
        graph_subject = default_graph.setdefault(
            graph_name, {'@id': graph_name})
        graph_subject['@graph'] = [
            v for k, v in sorted(node_map.items())
            if not is_subject_reference(v)]

    # produce flattened output
    return [value for key, value in sorted(default_graph.items())
            if not is_subject_reference(value)]
