"""Allow ``python -m babelboard``."""

import sys

from .cli import main

sys.exit(main())
