import sys

from phoebe.cli import main

sys.exit(main())
