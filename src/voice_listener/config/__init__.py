from .settings import ListenerConfig, load_config, create_example_env_file, setup_logging

__all__ = ["ListenerConfig", "load_config", "create_example_env_file", "setup_logging"]
