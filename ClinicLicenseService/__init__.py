"""
Clinic License Service Django project.
"""
