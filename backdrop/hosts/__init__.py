# backdrop/hosts/__init__.py
# pygame is only imported when a window host is actually requested.
