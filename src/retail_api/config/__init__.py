"""
Configuration management for the Retail API.

Contains Pydantic settings that work across local-dev, aws-mock, and aws-prod
deployment modes.
"""
