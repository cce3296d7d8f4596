"""
Services module for business logic separation.

This module contains the redirect resolver and the link service, keeping
business logic separate from the HTTP layer and from storage.
"""
