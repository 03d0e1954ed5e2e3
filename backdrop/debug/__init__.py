from backdrop.debug.log import setup_default_logging

__all__ = ["setup_default_logging"]
