__title__ = "fetchquest"
__description__ = "A scriptable, curl-like HTTP client."
__version__ = "0.1.0"
