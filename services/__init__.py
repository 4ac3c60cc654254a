"""
services - Supporting services used by the API layer.
"""

from services.config_store import load_saved_config, save_config     # noqa: F401
