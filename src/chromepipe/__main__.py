"""Allow `python -m chromepipe`."""

from chromepipe.cli import main

raise SystemExit(main())
