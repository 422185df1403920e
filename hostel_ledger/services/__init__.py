"""
Service layer for the fee ledger.
"""
