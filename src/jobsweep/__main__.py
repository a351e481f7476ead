import sys

from jobsweep.main import main

sys.exit(main())
