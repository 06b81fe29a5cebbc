""" The LDProc module is used to process JSON-LD. """
from . import jsonld
from . import nquads

__all__ = ['jsonld', 'nquads']
