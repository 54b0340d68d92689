"""
Service layer for the Retail API.

Composes the storage adapters into domain operations (customers, products,
images, messages, contract files) and provides listing helpers.
"""
