"""
The JSON value model shared by the LDProc algorithms.

Documents are handled in the shape produced by the :mod:`json` module:
``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` and ``dict``.
This module names those shapes, recognizes the JSON-LD object forms built
out of them and provides the multi-valued property helpers every algorithm
relies on.

.. module:: ldproc.values
  :synopsis: JSON-LD value model and helpers
"""

import enum
import re
from numbers import Integral, Real

__all__ = [
    'Kind', 'kind_of', 'KEYWORDS', 'FRAMING_KEYWORDS',
    'XSD_BOOLEAN', 'XSD_DOUBLE', 'XSD_INTEGER', 'XSD_STRING',
    'RDF', 'RDF_LIST', 'RDF_FIRST', 'RDF_REST', 'RDF_NIL', 'RDF_TYPE',
    'RDF_LANGSTRING', 'RDF_JSON', 'arrayify', 'add_value', 'get_values',
    'has_value', 'compare_values', 'shortest_least']

# XSD constants
XSD_BOOLEAN = 'http://www.w3.org/2001/XMLSchema#boolean'
XSD_DOUBLE = 'http://www.w3.org/2001/XMLSchema#double'
XSD_INTEGER = 'http://www.w3.org/2001/XMLSchema#integer'
XSD_STRING = 'http://www.w3.org/2001/XMLSchema#string'

# RDF constants
RDF = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'
RDF_LIST = RDF + 'List'
RDF_FIRST = RDF + 'first'
RDF_REST = RDF + 'rest'
RDF_NIL = RDF + 'nil'
RDF_TYPE = RDF + 'type'
RDF_LANGSTRING = RDF + 'langString'
RDF_JSON = RDF + 'JSON'

# JSON-LD keywords
KEYWORDS = frozenset([
    '@base',
    '@container',
    '@context',
    '@default',
    '@direction',
    '@embed',
    '@explicit',
    '@graph',
    '@id',
    '@import',
    '@index',
    '@json',
    '@language',
    '@list',
    '@nest',
    '@none',
    '@omitDefault',
    '@prefix',
    '@preserve',
    '@protected',
    '@propagate',
    '@requireAll',
    '@reverse',
    '@set',
    '@type',
    '@value',
    '@version',
    '@vocab',
])

# keywords only meaningful inside a frame
FRAMING_KEYWORDS = frozenset([
    '@default', '@embed', '@explicit', '@omitDefault', '@requireAll'])

# anything shaped like a keyword is reserved and ignored when unknown
KEYWORD_FORM = re.compile(r'^@[a-zA-Z]+$')


class Kind(enum.Enum):
    """The kind of a JSON value."""
    NULL = 'null'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    DOUBLE = 'double'
    STRING = 'string'
    ARRAY = 'array'
    OBJECT = 'object'


def kind_of(v):
    """
    Classifies a JSON value.

    Booleans are never reported as integers even though Python treats
    ``bool`` as a subclass of ``int``.

    :param v: the value to classify.

    :return: the Kind of the value.
    """
    if v is None:
        return Kind.NULL
    if isinstance(v, bool):
        return Kind.BOOLEAN
    if isinstance(v, Integral):
        return Kind.INTEGER
    if isinstance(v, Real):
        return Kind.DOUBLE
    if isinstance(v, str):
        return Kind.STRING
    if isinstance(v, list):
        return Kind.ARRAY
    if isinstance(v, dict):
        return Kind.OBJECT
    raise TypeError('Not a JSON value: %r' % (v,))


def is_keyword(v):
    """
    Returns whether or not the given value is a keyword.

    :param v: the value to check.

    :return: True if the value is a keyword, False if not.
    """
    return is_string(v) and v in KEYWORDS


def has_keyword_form(v):
    """
    Returns True if the value looks like a keyword, known or not.

    :param v: the value to check.

    :return: True if the value has the form of a keyword.
    """
    return is_string(v) and KEYWORD_FORM.match(v) is not None


def is_object(v):
    return isinstance(v, dict)


def is_empty_object(v):
    return is_object(v) and len(v) == 0


def is_array(v):
    return isinstance(v, list)


def is_string(v):
    return isinstance(v, str)


def is_bool(v):
    return isinstance(v, bool)


def is_integer(v):
    return isinstance(v, Integral) and not isinstance(v, bool)


def is_double(v):
    return not isinstance(v, Integral) and isinstance(v, Real)


def is_subject(v):
    """
    Returns True if the given value is a node object with properties.

    :param v: the value to check.

    :return: True if the value is a subject with properties, False if not.
    """
    # Note: A value is a subject if all of these hold True:
    # 1. It is an Object.
    # 2. It is not a @value, @set, or @list.
    # 3. It has more than 1 key OR any existing key is not @id.
    rval = False
    if (is_object(v) and
            '@value' not in v and '@set' not in v and '@list' not in v):
        rval = len(v) > 1 or '@id' not in v
    return rval


def is_subject_reference(v):
    """
    Returns True if the given value is a node reference (only an @id).

    :param v: the value to check.

    :return: True if the value is a subject reference, False if not.
    """
    return is_object(v) and len(v) == 1 and '@id' in v


def is_value(v):
    return is_object(v) and '@value' in v


def is_list(v):
    return is_object(v) and '@list' in v


def is_graph(v):
    """
    Returns True if the value is a graph object: an object with a @graph
    key and, optionally, @id and @index.

    :param v: the value to check.

    :return: True if the value is a graph object
    """
    return (is_object(v) and '@graph' in v and
            len([k for k in v if k not in ('@id', '@index')]) == 1)


def is_simple_graph(v):
    return is_graph(v) and '@id' not in v


def is_bnode(v):
    """
    Returns True if the given value is a blank node object.

    :param v: the value to check.

    :return: True if the value is a blank node, False if not.
    """
    # Note: A value is a blank node if all of these hold True:
    # 1. It is an Object.
    # 2. If it has an @id key its value begins with '_:'.
    # 3. It has no keys OR is not a @value, @set, or @list.
    rval = False
    if is_object(v):
        if '@id' in v:
            rval = is_string(v['@id']) and v['@id'].startswith('_:')
        else:
            rval = (
                len(v) == 0 or
                not ('@value' in v or '@set' in v or '@list' in v))
    return rval


def shortest_least(term):
    """
    Sort key ordering strings first by length and then lexicographically.

    :param term: the string.

    :return: the sort key.
    """
    return (len(term), term)


def arrayify(value):
    """
    Wraps a value in a list unless it already is one.

    :param value: the value.

    :return: the value as a list.
    """
    return value if is_array(value) else [value]


def _has_property(subject, property):
    """
    Returns True if the given subject has the given property with at least
    one value.

    :param subject: the subject to check.
    :param property: the property to look for.

    :return: True if the subject has the given property, False if not.
    """
    if property in subject:
        value = subject[property]
        return not is_array(value) or len(value) > 0
    return False


def has_value(subject, property, value):
    """
    Determines if the given value is a property of the given subject.

    :param subject: the subject to check.
    :param property: the property to check.
    :param value: the value to check.

    :return: True if the value exists, False if not.
    """
    if _has_property(subject, property):
        val = subject[property]
        is_list_ = is_list(val)
        if is_array(val) or is_list_:
            if is_list_:
                val = val['@list']
            for v in val:
                if compare_values(value, v):
                    return True
        # avoid matching the set of values with an array value parameter
        elif not is_array(value):
            return compare_values(value, val)
    return False


def add_value(
        subject, property, value,
        property_is_array=False, allow_duplicate=True):
    """
    Adds a value to a subject. If the value is an array, all values in the
    array will be added.

    :param subject: the subject to add the value to.
    :param property: the property that relates the value to the subject.
    :param value: the value to add.
    :param property_is_array: True if the property is always an array.
    :param allow_duplicate: True to allow duplicates, False to skip values
      already present (compared with :func:`compare_values`).
    """
    if is_array(value):
        if (len(value) == 0 and property_is_array and
                property not in subject):
            subject[property] = []
        for v in value:
            add_value(
                subject, property, v,
                property_is_array=property_is_array,
                allow_duplicate=allow_duplicate)
    elif property in subject:
        has_value_ = (
            not allow_duplicate and has_value(subject, property, value))

        # make property an array if value not present or always an array
        if (not is_array(subject[property]) and
                (not has_value_ or property_is_array)):
            subject[property] = [subject[property]]

        if not has_value_:
            subject[property].append(value)
    else:
        subject[property] = [value] if property_is_array else value


def get_values(subject, property):
    """
    Gets all of the values for a subject's property as an array.

    :param subject: the subject.
    :param property: the property.

    :return: all of the values for a subject's property as an array.
    """
    value = subject.get(property)
    if value is None:
        return []
    return arrayify(value)


def _same_scalar(v1, v2):
    if v1 != v2:
        return False
    if is_bool(v1) or is_bool(v2):
        return type(v1) == type(v2)
    return True


def compare_values(v1, v2):
    """
    Compares two JSON-LD values for equality. Two JSON-LD values will be
    considered equal if:

    1. They are both primitives of the same type and value.
    2. They are both @values with the same @value, @type, @language,
      @direction and @index, OR
    3. They both have @ids that are the same.

    :param v1: the first value.
    :param v2: the second value.

    :return: True if v1 and v2 are considered equal, False if not.
    """
    # 1. equal primitives
    if not is_object(v1) and not is_object(v2):
        return _same_scalar(v1, v2)

    # 2. equal @values
    if is_value(v1) and is_value(v2):
        return (
            _same_scalar(v1['@value'], v2['@value']) and
            v1.get('@type') == v2.get('@type') and
            v1.get('@language') == v2.get('@language') and
            v1.get('@direction') == v2.get('@direction') and
            v1.get('@index') == v2.get('@index'))

    # 3. equal @ids
    if (is_object(v1) and '@id' in v1 and
            is_object(v2) and '@id' in v2):
        return v1['@id'] == v2['@id']

    return False


def deep_equal(v1, v2):
    """
    Structural equality that keeps booleans distinct from numbers and
    treats arrays as ordered.

    :param v1: the first value.
    :param v2: the second value.

    :return: True if both values have the same structure and contents.
    """
    if is_object(v1) and is_object(v2):
        return (v1.keys() == v2.keys() and
                all(deep_equal(v1[k], v2[k]) for k in v1))
    if is_array(v1) and is_array(v2):
        return (len(v1) == len(v2) and
                all(deep_equal(a, b) for a, b in zip(v1, v2)))
    if is_object(v1) or is_object(v2) or is_array(v1) or is_array(v2):
        return False
    return _same_scalar(v1, v2)
