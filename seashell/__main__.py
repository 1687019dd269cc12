import sys

from seashell.shell import main

sys.exit(main())
