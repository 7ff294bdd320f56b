"""JSON defaults: labels, colours, top-N counts and onboarding amounts."""

from .defaults import load_config, get_config_value

__all__ = ['load_config', 'get_config_value']
