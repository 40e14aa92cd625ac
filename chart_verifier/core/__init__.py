"""
Core components for chart verification.

Contains:
- Data models (CheckResult, CheckOutcome, Report)
- Check registry and descriptors
- Platform version resolution
- Error hierarchy
"""
