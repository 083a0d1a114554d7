import sys

from dnshook.cli import main

sys.exit(main())
