#!/usr/bin/env python3
"""
gen_lua.py - Lua binding generator entry point

Expands the #[lua_methods] impl blocks of the given Rust files.

Usage:
    python scripts/gen_lua.py src/lib.rs [--output DIR] [--types DIR]
"""

import os
import sys

# Add scripts directory to path
script_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, script_dir)

from mlua_bindgen.cli import main


if __name__ == '__main__':
    sys.exit(main())
