"""
Test suite for the Vijaya Children's Clinic portal.

Contains unit tests for the filters, backend client and services, and
integration tests for the JSON API and HTML pages.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
os.environ["BACKEND_RETRY_DELAY"] = "0"
