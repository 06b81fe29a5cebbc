"""
The N-Quads codec for RDF datasets.

Serialized datasets have one quad per line, lines sorted, so two equal
datasets always serialize to the same text. Literals with a base direction
are written with the language tag ``@lang--dir``.

.. module:: ldproc.nquads
  :synopsis: N-Quads parsing and serialization
"""

import re

from .errors import NQuadsSyntaxError
from .rdf import BlankNode, IRIRef, Literal, Quad
from .values import RDF_LANGSTRING, XSD_STRING

__all__ = [
    'escape', 'unescape', 'parse_nquads', 'serialize_nquads',
    'serialize_nquad']

_ECHARS = {
    't': '\t', 'b': '\b', 'n': '\n', 'r': '\r', 'f': '\f',
    '"': '"', "'": "'", '\\': '\\'}

_ESCAPES = re.compile(
    r'\\(?:([tbnrf"\'\\])|u([0-9A-Fa-f]{4})|U([0-9A-Fa-f]{8}))')

# define partial regexes
_UCHAR = r'\\u[0-9A-Fa-f]{4}|\\U[0-9A-Fa-f]{8}'
_IRI = (
    r'(?:<([A-Za-z][A-Za-z0-9+.\-]*:'
    r'(?:[^<>"{}|^`\\\x00-\x20]|' + _UCHAR + r')*)>)')
_PN_CHARS_BASE = (
    r'A-Za-z\u00C0-\u00D6\u00D8-\u00F6\u00F8-\u02FF\u0370-\u037D'
    r'\u037F-\u1FFF\u200C-\u200D\u2070-\u218F\u2C00-\u2FEF'
    r'\u3001-\uD7FF\uF900-\uFDCF\uFDF0-\uFFFD\U00010000-\U000EFFFF')
_PN_CHARS_U = _PN_CHARS_BASE + '_:'
_PN_CHARS = (
    _PN_CHARS_U + r'\-0-9\u00B7\u0300-\u036F\u203F-\u2040')
_BNODE = (
    '(_:[' + _PN_CHARS_U + '0-9]'
    '(?:[' + _PN_CHARS + '.]*[' + _PN_CHARS + '])?)')
_PLAIN = (
    r'"((?:[^"\\\r\n]|\\[tbnrf"\'\\]|' + _UCHAR + r')*)"')
_DATATYPE = r'(?:\^\^' + _IRI + ')'
_LANGUAGE = r'(?:@([a-zA-Z]+(?:-[a-zA-Z0-9]+)*)(?:--(ltr|rtl))?)'
_LITERAL = '(?:' + _PLAIN + '(?:' + _DATATYPE + '|' + _LANGUAGE + ')?)'
_WSO = r'[ \t]*'

# define quad part regexes
_SUBJECT = '(?:' + _IRI + '|' + _BNODE + ')' + _WSO
_PROPERTY = '(?:' + _IRI + '|' + _BNODE + ')' + _WSO
_OBJECT = '(?:' + _IRI + '|' + _BNODE + '|' + _LITERAL + ')' + _WSO
_GRAPH = '(?:(?:' + _IRI + '|' + _BNODE + ')' + _WSO + ')?'

# Note: literals are not allowed in the graph position, they are not
# supported by the RDF data model or the JSON-LD data model.

# full quad regex
_QUAD = re.compile(
    '^' + _WSO + _SUBJECT + _PROPERTY + _OBJECT + _GRAPH +
    r'\.' + _WSO + '(?:#.*)?$')

_EMPTY = re.compile(r'^' + _WSO + '(?:#.*)?$')

# characters an IRIREF may only hold as a numeric escape
_IRI_ESCAPES = re.compile(r'[<>"{}|^`\\\x00-\x20]')


def escape(value: str):
    return (
        value.replace("\\", "\\\\")
        .replace("\t", "\\t")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace('"', '\\"')
    )


def unescape(value: str):
    """
    Replaces the string escapes and numeric escapes of N-Quads text.

    :param value: the escaped text.

    :return: the unescaped text.
    """
    def replace(match):
        if match.group(1) is not None:
            return _ECHARS[match.group(1)]
        return chr(int(match.group(2) or match.group(3), 16))
    return _ESCAPES.sub(replace, value)


def _syntax_error(line, line_number):
    stripped = line.strip()
    if not stripped.endswith('.') and '#' not in stripped:
        reason = 'statement is not terminated with "."'
    elif stripped.startswith('"'):
        reason = 'a literal cannot be used as subject'
    else:
        reason = 'expected subject, predicate, object and optional graph'
    return NQuadsSyntaxError(
        'Error while parsing N-Quads; invalid quad %r at line %d: %s.' % (
            line.rstrip('\r\n'), line_number, reason),
        line_number=line_number, reason=reason)


def _term(iri, bnode):
    if iri is not None:
        return IRIRef(unescape(iri))
    return BlankNode(bnode)


def parse_nquads(input_: str):
    """
    Parses RDF in the form of N-Quads.

    :param input_: the N-Quads input to parse.

    :return: the list of quads, duplicates included.
    """
    quads = []

    # split N-Quad input into lines
    for line_number, line in enumerate(input_.splitlines(), 1):
        # skip empty lines and comments
        if _EMPTY.match(line) is not None:
            continue

        # parse quad
        match = _QUAD.match(line)
        if match is None:
            raise _syntax_error(line, line_number)
        match = match.groups()

        subject = _term(match[0], match[1])
        predicate = _term(match[2], match[3])

        # get object
        if match[4] is not None or match[5] is not None:
            object_ = _term(match[4], match[5])
        else:
            value = unescape(match[6])
            if match[7] is not None:
                object_ = Literal(value, unescape(match[7]))
            elif match[8] is not None:
                object_ = Literal(value, RDF_LANGSTRING, match[8], match[9])
            else:
                object_ = Literal(value, XSD_STRING)

        # get graph name (None is used for the default graph)
        graph = None
        if match[10] is not None or match[11] is not None:
            graph = _term(match[10], match[11])

        quads.append(Quad(subject, predicate, object_, graph))

    return quads


def serialize_nquads(quads):
    """
    Converts a list of quads to N-Quads.

    :param quads: the quads to convert.

    :return: the N-Quads string.
    """
    return ''.join(sorted(serialize_nquad(quad) for quad in quads))


def _escape_iri(value):
    return _IRI_ESCAPES.sub(lambda m: '\\u%04X' % ord(m.group(0)), value)


def _serialize_term(term):
    if isinstance(term, IRIRef):
        return '<' + _escape_iri(term.value) + '>'
    return term.value


def serialize_nquad(quad):
    """
    Converts a quad to an N-Quad string (a single line).

    :param quad: the quad to convert.

    :return: the N-Quad string.
    """
    s, p, o, g = quad

    line = _serialize_term(s) + ' ' + _serialize_term(p) + ' '

    # object is IRI, bnode, or literal
    if isinstance(o, Literal):
        line += '"' + escape(o.value) + '"'
        if o.language:
            line += '@' + o.language
            if o.direction:
                line += '--' + o.direction
        elif o.datatype not in (XSD_STRING, RDF_LANGSTRING):
            line += '^^<' + _escape_iri(o.datatype) + '>'
    else:
        line += _serialize_term(o)

    # graph
    if g is not None:
        line += ' ' + _serialize_term(g)

    return line + ' .\n'
