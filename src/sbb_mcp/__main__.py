import sys

from sbb_mcp.cli import main

sys.exit(main())
