"""
Services module for business logic separation.

This module contains the counter cache and visit ledger adapters and the
service that orchestrates them, keeping business logic out of the API
endpoints.
"""
