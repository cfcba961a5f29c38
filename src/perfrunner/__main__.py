import sys

from perfrunner.cli import main

sys.exit(main())
