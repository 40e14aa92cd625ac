"""
Chart acquisition.

Contains:
- ChartHandle and parsers for archives and directories
- ChartAcquirer - fetch and cache charts by locator
"""
