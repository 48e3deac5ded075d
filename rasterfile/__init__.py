# rasterfile/__init__.py

from .rasterfile import __doc__, __all__, __version__
from .rasterfile import *
