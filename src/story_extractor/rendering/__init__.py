"""HTML rendering of stories and batch dashboards (Jinja2)."""
