"""
Chain indexer process.
"""
