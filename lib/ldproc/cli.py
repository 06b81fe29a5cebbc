"""
ldproc - command line interface for LDProc

Reads a JSON-LD document (or N-Quads for ``fromrdf``) from a file, a URL
or ``-`` for stdin, runs one operation and writes the result to stdout::

    ldproc compact person.jsonld context.jsonld
    ldproc tordf https://example.org/doc.jsonld
    cat data.nq | ldproc fromrdf - --native-types
"""
import argparse
import json
import logging
import os
import sys

from . import jsonld
from .errors import JsonLdError

log = logging.getLogger(__name__)


def read_text(source):
    """
    Reads the text of a file, or stdin for ``-``.

    :param source: the path, or '-'.

    :return: the text.
    """
    if source == '-':
        return sys.stdin.read()
    with open(source, 'r', encoding='utf-8') as f:
        return f.read()


def read_document(source):
    """
    Reads a JSON-LD document argument.

    Files and stdin are parsed as JSON; any other value is returned as is,
    so the API dereferences it with the document loader.

    :param source: the path, URL or '-'.

    :return: the parsed document or the URL.
    """
    if source is None:
        return None
    if source == '-' or os.path.exists(source):
        log.debug('read_document: %r', source)
        return json.loads(read_text(source))
    return source


def build_parser():
    prs = argparse.ArgumentParser(
        prog='ldproc', description='Process JSON-LD documents.')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('input',
                        help='Input file, URL or - for stdin')
    common.add_argument('--base',
                        help='Base IRI to use',
                        dest='base',
                        action='store')
    common.add_argument('--expand-context',
                        help='@context file or URI to expand with',
                        dest='expandContext',
                        action='store',
                        default=None)
    common.add_argument('--indent',
                        help='Indent json with n spaces [default: 1]',
                        dest='indent',
                        action='store',
                        type=int,
                        default=1)
    common.add_argument('-v', '--verbose',
                        dest='verbose',
                        action='store_true')
    common.add_argument('-q', '--quiet',
                        dest='quiet',
                        action='store_true')

    compacting = argparse.ArgumentParser(add_help=False)
    compacting.add_argument('--dont-compact-arrays',
                            help='Don\'t compact arrays to single values',
                            dest='dont_compact_arrays',
                            action='store_true',
                            default=False)
    compacting.add_argument('--graph',
                            help='Always output a top level graph '
                                 '(default: False)',
                            dest='graph',
                            action='store_true',
                            default=False)

    commands = prs.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    commands.add_parser(
        'expand', parents=[common],
        help='Perform JSON-LD expansion')

    cmd = commands.add_parser(
        'compact', parents=[common, compacting],
        help='Compact the document with the given @context')
    cmd.add_argument('context', help='@context file or URI')

    cmd = commands.add_parser(
        'flatten', parents=[common, compacting],
        help='Perform JSON-LD flattening')
    cmd.add_argument('--context',
                     help='@context file or URI to compact with',
                     dest='context',
                     default=None)

    cmd = commands.add_parser(
        'frame', parents=[common, compacting],
        help='Perform JSON-LD framing')
    cmd.add_argument('frame', help='frame file or URI')
    cmd.add_argument('--embed',
                     help='default @embed flag (default: @always)',
                     dest='embed',
                     choices=['@always', '@never'],
                     default='@always')
    cmd.add_argument('--explicit',
                     help='default @explicit flag (default: False)',
                     dest='explicit',
                     action='store_true',
                     default=False)
    cmd.add_argument('--omit-default',
                     help='default @omitDefault flag (default: False)',
                     dest='omitDefault',
                     action='store_true',
                     default=False)

    commands.add_parser(
        'tordf', parents=[common],
        help='Convert the document to N-Quads')

    cmd = commands.add_parser(
        'fromrdf', parents=[common],
        help='Convert an N-Quads dataset to JSON-LD')
    cmd.add_argument('--rdf-type',
                     help='Use rdf:type instead of @type',
                     dest='useRdfType',
                     action='store_true')
    cmd.add_argument('--native-types',
                     help='Convert XSD types into native types',
                     dest='useNativeTypes',
                     action='store_true')
    return prs


def run(opts):
    """
    Runs the selected command.

    :param opts: the parsed arguments.

    :return: the output text.
    """
    options = {}
    if opts.base is not None:
        options['base'] = opts.base
    if opts.expandContext is not None:
        options['expandContext'] = read_document(opts.expandContext)
    if hasattr(opts, 'dont_compact_arrays'):
        options['compactArrays'] = not opts.dont_compact_arrays
        options['graph'] = opts.graph

    if opts.command == 'tordf':
        options['format'] = 'application/n-quads'
        return jsonld.to_rdf(read_document(opts.input), options)

    if opts.command == 'fromrdf':
        options['useRdfType'] = opts.useRdfType
        options['useNativeTypes'] = opts.useNativeTypes
        output = jsonld.from_rdf(read_text(opts.input), options)
    elif opts.command == 'expand':
        output = jsonld.expand(read_document(opts.input), options)
    elif opts.command == 'compact':
        output = jsonld.compact(
            read_document(opts.input), read_document(opts.context), options)
    elif opts.command == 'flatten':
        output = jsonld.flatten(
            read_document(opts.input), read_document(opts.context), options)
    else:
        options['embed'] = opts.embed
        options['explicit'] = opts.explicit
        options['omitDefault'] = opts.omitDefault
        output = jsonld.frame(
            read_document(opts.input), read_document(opts.frame), options)

    return json.dumps(output, indent=opts.indent) + '\n'


def main(*argv):
    opts = build_parser().parse_args(args=list(argv) or sys.argv[1:])

    if not opts.quiet:
        logging.basicConfig()

        if opts.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

    try:
        sys.stdout.write(run(opts))
    except (JsonLdError, OSError, ValueError) as e:
        sys.stderr.write('ldproc: %s\n' % e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:]))
