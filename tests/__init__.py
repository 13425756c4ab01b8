"""
Test suite for the MediCare Hospital Management System.

Contains unit tests for the authorization rules and API tests for every
endpoint.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
