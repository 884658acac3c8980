import sys

from devvm.cli import main

sys.exit(main())
