"""
Connection, classification and dispatch for the combined stream
"""
