from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from invoices.models import Invoice, InvoiceType
from purchasing.models import PurchaseOrder, PurchaseOrderStatus
from tenants.models import Tenant


class SeedDemoTests(TestCase):
    def test_seed_builds_chains_and_purchases(self):
        call_command("seed_demo", "--seed", "7", "--invoices", "5", stdout=StringIO())
        tenant = Tenant.objects.get(code="demo")
        invoices = Invoice.objects.filter(tenant=tenant)
        self.assertEqual(invoices.filter(type=InvoiceType.CREDIT_NOTE).count(), 4)
        self.assertEqual(invoices.filter(type=InvoiceType.PURCHASE, purchase_order__isnull=False).count(), 3)
        self.assertEqual(PurchaseOrder.objects.filter(tenant=tenant, status=PurchaseOrderStatus.APPROVED).count(), 3)

    def test_second_run_does_not_duplicate_invoices(self):
        call_command("seed_demo", "--invoices", "3", stdout=StringIO())
        before = Invoice.objects.count()
        call_command("seed_demo", "--invoices", "3", stdout=StringIO())
        self.assertEqual(Invoice.objects.count(), before)
