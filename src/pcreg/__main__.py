import sys

from pcreg.cli import main

sys.exit(main())
