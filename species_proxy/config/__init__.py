"""
Configuration module for the species classification proxy.

Provides centralized configuration using Pydantic Settings with environment variable support.
"""

from species_proxy.config.settings import (
    ClassifyConfig,
    GenericClassifierConfig,
    PlantClassifierConfig,
    RecordCleanerConfig,
    RegionalClassifierConfig,
    Settings,
    WarehouseConfig,
    get_settings,
)


__all__ = [
    'ClassifyConfig',
    'GenericClassifierConfig',
    'PlantClassifierConfig',
    'RecordCleanerConfig',
    'RegionalClassifierConfig',
    'Settings',
    'WarehouseConfig',
    'get_settings',
]
