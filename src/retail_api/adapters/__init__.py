"""
Adapter layer for the Retail API.

Contains mode-aware adapters for the four storage primitives: tables
(local SQLite / DynamoDB), blobs (local directory / S3), queues (local
directory / SQS) and the mounted file share.
"""
