"""
Cosmos DB Analytical Storage Scripts

This package contains the analytical storage tool:

- disable_analytical_storage.py: command line entry point
- cosmos/: remote clients, schemas, retry, enumeration, confirmation and reporting
"""
