"""Persistence: database engine, ORM models, repositories and migrations."""
