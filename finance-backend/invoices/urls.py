# invoices/urls.py
from django.urls import path
from .api import (
    InvoiceListCreateView, InvoiceDetailView, InvoiceChainView, InvoicePDFView, InvoiceExportView,
)


app_name = "invoices"

urlpatterns = [
    path("", InvoiceListCreateView.as_view(), name="invoice-list"),
    path("export", InvoiceExportView.as_view(), name="invoice-export"),
    path("<int:pk>", InvoiceDetailView.as_view(), name="invoice-detail"),
    path("<int:pk>/chain", InvoiceChainView.as_view(), name="invoice-chain"),
    path("<int:pk>/pdf", InvoicePDFView.as_view(), name="invoice-pdf"),
]
