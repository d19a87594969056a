"""
Core package for the Aurora student records client.

Holds configuration, logging, the error taxonomy, record selection and the
session orchestrator that drives both backends through the VPN gateway.
"""
