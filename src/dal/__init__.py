"""Data Abstraction Layer (DAL) for the example repository.

Store implementations live in ``dal.memory`` and ``dal.postgres``; callers
obtain the configured one through ``dal.factory.get_example_store``.
"""

from dal.factory import get_example_store, reset_singletons

__all__ = ["get_example_store", "reset_singletons"]
