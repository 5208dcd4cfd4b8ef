from .pool_manager import TenantConnection, TenantPoolManager, bind_positional

__all__ = ["TenantConnection", "TenantPoolManager", "bind_positional"]
