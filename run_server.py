#!/usr/bin/env python3
"""
Entry point for the StatsPlus MCP Server.
This script provides a clean entry point for Claude Desktop.
"""

import subprocess
import sys
from pathlib import Path

current_dir = Path(__file__).parent

if __name__ == "__main__":
    try:
        result = subprocess.run([
            sys.executable, "-m", "statsplus_mcp.mcp_server"
        ], cwd=str(current_dir))
        sys.exit(result.returncode)
    except OSError as e:
        print(f"Error starting MCP server: {e}", file=sys.stderr)
        sys.exit(1)
