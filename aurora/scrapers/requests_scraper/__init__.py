"""
Requests-based scraper module for the Aurora student records client.

This package contains modules for reaching the registrar and portal
backends through the VPN gateway using HTTP requests and parsing the
returned pages and JSON documents.
"""
