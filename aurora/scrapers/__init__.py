"""
Scrapers package for the Aurora student records client.

This package contains all network-facing functionality including:
- The VPN gateway session shared by both backends
- Registrar and portal backend sessions
- Payload parsers turning raw pages into typed records
"""
