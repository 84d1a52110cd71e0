import sys

from collection_etl.cli import main

sys.exit(main())
