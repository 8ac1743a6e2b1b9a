import sys

from tick_keepalive.cli import main

sys.exit(main())
