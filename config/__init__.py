"""
Configuration package for the Tapak Proyek exporter.

This package contains configuration loading and validation.

Modules:
    config_loader: Load export configuration and layout defaults from JSON
"""

__version__ = '1.0.0'
