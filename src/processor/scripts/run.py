"""Command-line entry point for the schedule engine."""

import sys
from pathlib import Path

# Add parent directory to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from schedule_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
