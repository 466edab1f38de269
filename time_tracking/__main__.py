import sys

from time_tracking.hooks.router import main

sys.exit(main())
