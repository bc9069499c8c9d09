from src.config.config import config_instance, Settings
