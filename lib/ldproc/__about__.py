# -*- coding: utf-8 -*-
__all__ = [
    '__copyright__', '__license__', '__version__'
]

__copyright__ = 'Copyright (c) 2011-2026 Digital Bazaar, Inc. and LDProc contributors'
__license__ = 'New BSD license'
__version__ = '1.0.0'
