"""Retail back-office API: storage gateway over tables, blobs, a queue and a file share."""
