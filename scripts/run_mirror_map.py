"""
Mirror Map Launcher

Runs the mirror map generator straight from a source checkout, without
installing the package.

Usage:
    python scripts/run_mirror_map.py -i hosts.txt -b 4 -o ~/movemirrors.cfg

Environment Variables:
    MIRRORMAP_DATABASE_URL: SQLAlchemy URL of the coordinator database
    MIRRORMAP_REQUIRED_USER: OS user the tool must run as (default: gpadmin)
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mirrormap.cli import main


if __name__ == "__main__":
    sys.exit(main())
