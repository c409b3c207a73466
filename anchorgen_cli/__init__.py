"""
Command-line interface for the anchorgen SDK.
"""
