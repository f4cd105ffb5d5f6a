"""
Services module for business logic separation.

This module contains service classes that encapsulate the admission
pipeline, the link store and redirect resolution, keeping them separate
from API endpoints and database models.
"""
