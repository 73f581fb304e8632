"""
Vijaya Children's Clinic Portal

FastAPI website for a children's clinic: public appointment booking,
a staff portal for reviewing appointment requests, and an admin area
for managing staff accounts. Data lives in the clinic backend service.
"""

__version__ = "1.0.0"
