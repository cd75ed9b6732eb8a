from .store_maintenance_use_case import StoreMaintenanceUseCase

__all__ = ["StoreMaintenanceUseCase"]
