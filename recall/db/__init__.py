"""
Persistence layer: SQLAlchemy models, engine/session helpers and MemoryStore.
"""
