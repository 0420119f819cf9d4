"""
Portfolio showcase backend.

This package provides a FastAPI application that stores portfolio entries,
serves them with filtering, sorting and pagination, keeps their images in a
blob store or inline, and relays contact-form inquiries by email.
"""
