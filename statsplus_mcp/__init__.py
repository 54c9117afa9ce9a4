"""MCP server exposing a StatsPlus baseball league as agent tools."""

__version__ = "0.1.0"
