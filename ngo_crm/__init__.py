"""NGO CRM: persons, contracts and document templates over a hosted backend"""

__version__ = "0.1.0"
