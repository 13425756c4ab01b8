"""
MediCare Hospital Management System

A FastAPI-based API for patients, doctors and administrators: appointment
booking, medical records, doctor verification and utility requests.
"""

__version__ = "1.0.0"
