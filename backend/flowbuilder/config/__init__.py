"""
Configuration Module

Environment-backed settings for the workflow builder.
"""
from flowbuilder.config.builder_config import BuilderConfig, get_builder_config
from flowbuilder.config.env_utils import read_env_defaults

__all__ = ['BuilderConfig', 'get_builder_config', 'read_env_defaults']
