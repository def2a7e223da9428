import sys

from ghmd.cli import main

sys.exit(main())
