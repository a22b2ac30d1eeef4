"""
Services.

Indexing logic layer: chain access, event decoding, domain handlers
and the per-chain sync engine.
"""
