"""Allow ``python -m docqa`` execution."""

import sys

from docqa.cli.manage import main

sys.exit(main())
