"""
Data package for the Aurora student records client.

Typed record definitions and export of collected results.
"""
