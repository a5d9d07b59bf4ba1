"""
Unit tests package.

Services, validators and rule functions exercised against InMemoryStorage
and mocks; no database and no HTTP.
"""
