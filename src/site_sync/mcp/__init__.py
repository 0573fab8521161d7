"""MCP server exposing publish targets and sync actions over stdio."""
