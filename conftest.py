"""
Pytest configuration for Django tests.
"""
import os

# pytest-django configures Django from this module.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pawvot_shop.settings')
