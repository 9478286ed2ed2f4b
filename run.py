#!/usr/bin/env python
"""
Launcher script for the Recipe Costing command-line interface.

This script ensures the correct Python path is set before running the CLI
from a source checkout.
"""

import sys
from pathlib import Path

# Add src/ to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

# Now import and run the CLI
from recipe_costing.utils.costing_cli import main

if __name__ == "__main__":
    sys.exit(main())
