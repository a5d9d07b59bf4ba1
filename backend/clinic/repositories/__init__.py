# Repositories package initialization
# SQLAlchemy and in-memory implementations of the storage interface
