"""
User interface module: view projections and the JSON API.
"""

__all__ = ["views", "http_server"]
