"""Allow ``python -m docqa.cli`` execution."""

import sys

from docqa.cli.manage import main

sys.exit(main())
