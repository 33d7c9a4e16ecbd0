from .settings import Config, config, load_config

__all__ = ["Config", "config", "load_config"]
