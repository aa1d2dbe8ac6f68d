"""
Test suite for the place import backend.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_batch_import_service.py -v
"""
