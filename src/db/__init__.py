"""SQLAlchemy engine helpers and table models for the record store."""
