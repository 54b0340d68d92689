"""Wire-level request decoding for upload endpoints."""
