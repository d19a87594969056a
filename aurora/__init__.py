"""
Main package for the Aurora student records client.

This is the root package that contains all modules including:
- core: Session orchestration, configuration, logging and errors
- scrapers: VPN gateway and backend sessions, payload parsers
- data: Typed records and result export
"""
