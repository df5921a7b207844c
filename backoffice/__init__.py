"""
Back-office service for the assignment-writing site.

This package provides a FastAPI application over the ordered notice list
shown in the public banner, together with the database and object-storage
abstractions the admin screens write through.
"""
