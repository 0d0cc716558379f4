import sys

from logalert.main import main

sys.exit(main())
