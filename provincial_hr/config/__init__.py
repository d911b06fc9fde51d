"""Configuration module for the provincial HR service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
