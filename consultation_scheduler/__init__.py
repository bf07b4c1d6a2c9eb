"""
Consultation Scheduler

A FastAPI service around a scheduling engine for healthcare providers:
providers offer time slots, patients book them exactly once, and booked
consultations move through a small status lifecycle gated by caller identity.
"""

__version__ = "1.0.0"
