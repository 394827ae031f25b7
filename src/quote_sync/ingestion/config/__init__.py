from .value_objects import HttpClientConfig, RetryConfig

__all__ = ["HttpClientConfig", "RetryConfig"]
