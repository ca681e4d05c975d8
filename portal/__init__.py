"""
Realty portal web application: pages, htmx fragments and JSON API.
"""
