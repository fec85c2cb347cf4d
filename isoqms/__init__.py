"""
ISO QMS Platform

Multi-tenant backend for consultancies running ISO management systems:
projects, nonconformities, action plans, risks, audits, documents,
suppliers, policies and indicators, isolated per tenant.
"""

__version__ = "1.0.0"
