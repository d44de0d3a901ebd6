"""
Utilities Package

Configuration, logging, performance monitoring and sample data generation.
"""

from .config import Config, ValidationSettings
from .performance_monitor import monitor_performance, PerformanceMonitor, SystemResourceMonitor
from .logging_setup import setup_logging
from .data_generator import MeasurementDataGenerator

__all__ = [
    'Config',
    'ValidationSettings',
    'monitor_performance',
    'PerformanceMonitor',
    'SystemResourceMonitor',
    'setup_logging',
    'MeasurementDataGenerator'
]
