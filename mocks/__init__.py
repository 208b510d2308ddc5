"""Mock data for development and testing."""

from mocks.data_generator import MockDataGenerator

__all__ = [
    "MockDataGenerator",
]
