"""DenueWorker - unified entry point.

Run the harvester (default):
    python -m denueworker --mode=full

Summarise a dumped GeoJSON file:
    python -m denueworker report data/denue_leon_full_....geojson
"""

from __future__ import annotations

import sys


def main():
    """CLI entry point."""
    argv = sys.argv[1:]
    if argv and argv[0] == "report":
        from .analytics.report import main as report_main

        sys.exit(report_main(argv[1:]))

    from .harvester.run import main as harvest_main

    sys.exit(harvest_main(argv))


if __name__ == "__main__":
    main()
