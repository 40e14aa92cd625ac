"""
Report rendering (JSON, YAML, Markdown, rich table).
"""
