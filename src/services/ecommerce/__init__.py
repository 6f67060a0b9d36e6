"""
Carrier integration services
"""
