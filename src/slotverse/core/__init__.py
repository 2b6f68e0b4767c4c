"""Core infrastructure: database, ORM models, schemas, logging and errors."""
