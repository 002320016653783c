"""
Shared utilities: exceptions and performance logging.
"""
