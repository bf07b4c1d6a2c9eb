"""
Test suite for the Consultation Scheduler.

Contains unit tests for the scheduling engine and snapshot store, and
API tests for the HTTP routes.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
