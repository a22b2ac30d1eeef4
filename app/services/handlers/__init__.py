"""
Domain event handlers (orders, escrows, users).
"""
