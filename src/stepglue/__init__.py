"""
stepglue - glue registration and dispatch for behavior-driven test runners.

Layers:
- stepglue.core: errors, logging, settings
- stepglue.framework: markers, definitions, registry, registration engine
"""

__version__ = "0.1.0"

from stepglue.core import *  # noqa
from stepglue.framework import *  # noqa
