"""
Clinics module - Clinics that licenses are issued to.

This module handles:
- Clinic entity
- Clinic persistence
"""
