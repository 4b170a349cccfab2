import sys

from lessbuild.cli import main

sys.exit(main())
