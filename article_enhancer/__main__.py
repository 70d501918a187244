import sys

from article_enhancer.cli import main

sys.exit(main())
