"""
Cosmos DB Administration

This module contains the building blocks of the analytical storage tool:
- Remote management clients (Azure CLI and Azure SDK)
- Response schemas and the analytical storage classifier
- Fixed-delay retry wrapper for remote calls
- Enumeration, confirmation, bulk disable and reporting
"""
