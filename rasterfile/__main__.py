# rasterfile/__main__.py

import sys

from .rasterfile import main

sys.exit(main())
