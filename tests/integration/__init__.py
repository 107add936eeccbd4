"""
Integration tests for ivfdb.

These tests run the engine end to end: search quality against brute
force, recovery from the write-ahead log, and concurrent use.
"""
