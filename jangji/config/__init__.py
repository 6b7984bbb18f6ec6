from jangji.config.base import BaseConfig, DevelopmentConfig, TestingConfig, ProductionConfig


__all__ = ["BaseConfig", "DevelopmentConfig", "TestingConfig", "ProductionConfig"]
