# core/api.py
from rest_framework.routers import DefaultRouter

from clients.views import ClientViewSet
from projects.views import CostCenterViewSet, ProjectViewSet
from purchasing.views import PurchaseOrderViewSet, SupplierViewSet

router = DefaultRouter()
# Master data
router.register(r"clients", ClientViewSet, basename="client")
router.register(r"projects", ProjectViewSet, basename="project")
router.register(r"cost-centers", CostCenterViewSet, basename="costcenter")
# Purchasing
router.register(r"suppliers", SupplierViewSet, basename="supplier")
router.register(r"purchase-orders", PurchaseOrderViewSet, basename="purchaseorder")
