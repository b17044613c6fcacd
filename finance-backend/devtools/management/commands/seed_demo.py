# devtools/management/commands/seed_demo.py
import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clients.validators import rut_check_digit
from common.roles import TenantRole
from invoices.models import Invoice, InvoiceStatus, InvoiceType
from invoices.services.documents import issue_invoice
from projects.models import CostCenter, Project
from purchasing.models import Supplier
from purchasing.services import approve_purchase_order, save_purchase_order
from tenants.models import Tenant, TenantUser


DEMO_CLIENTS = [
    "Constructora Andes SpA",
    "Inmobiliaria Pacífico Ltda",
    "Servicios Mineros del Norte",
    "Comercial Los Robles",
    "Ingeniería Austral SpA",
]

DEMO_SUPPLIERS = [
    ("Ferretería Sur Ltda", "Materiales"),
    ("Hormigones del Valle SpA", "Materiales"),
    ("Arriendo de Maquinaria Cordillera", "Equipos"),
]


def _demo_rut(n: int) -> str:
    body = 76000000 + n * 1013
    return f"{body}-{rut_check_digit(body)}"


class Command(BaseCommand):
    help = "Seed demo data: company, owner, clients, suppliers, cost center, project, purchase orders and invoice chains."

    def add_arguments(self, parser):
        parser.add_argument("--tenant-code", default="demo")
        parser.add_argument("--owner-username", default="owner1")
        parser.add_argument("--owner-password", default="owner123")
        parser.add_argument("--invoices", type=int, default=20)
        parser.add_argument("--days", type=int, default=90)
        parser.add_argument("--seed", type=int, default=None)

    @transaction.atomic
    def handle(self, *args, **opts):
        if opts["seed"] is not None:
            random.seed(opts["seed"])
        tenant_code = opts["tenant_code"]
        owner_username = opts["owner_username"]
        owner_password = opts["owner_password"]
        num_invoices = opts["invoices"]
        days = opts["days"]

        User = get_user_model()

        # -- Company
        tenant, _ = Tenant.objects.get_or_create(
            code=tenant_code,
            defaults={"name": f"{tenant_code.title()} Ingeniería", "rut": _demo_rut(0)},
        )
        self.stdout.write(self.style.SUCCESS(f"Tenant: {tenant.code} (id={tenant.id})"))

        # -- Owner user
        owner, created = User.objects.get_or_create(
            username=owner_username,
            defaults={"email": f"{owner_username}@demo.local"},
        )
        if created:
            owner.set_password(owner_password)
            owner.save(update_fields=["password"])
            self.stdout.write(self.style.SUCCESS(f"Created owner user: {owner_username} / {owner_password}"))
        else:
            self.stdout.write(self.style.WARNING(f"Owner user exists: {owner_username} (password unchanged)"))

        tu, _ = TenantUser.objects.get_or_create(
            tenant=tenant, user=owner,
            defaults={"role": TenantRole.OWNER, "is_active": True},
        )
        if tu.role != TenantRole.OWNER or not tu.is_active:
            tu.role = TenantRole.OWNER
            tu.is_active = True
            tu.save(update_fields=["role", "is_active"])
        self.stdout.write(self.style.SUCCESS(f"Tenant membership ensured for {owner_username} as OWNER"))

        # -- Clients
        clients = []
        for i, name in enumerate(DEMO_CLIENTS, start=1):
            client, _ = tenant.clients.get_or_create(rut=_demo_rut(i), defaults={"name": name})
            clients.append(client)
        self.stdout.write(self.style.SUCCESS(f"Clients: {len(clients)}"))

        # -- Suppliers
        suppliers = []
        for i, (name, category) in enumerate(DEMO_SUPPLIERS, start=len(DEMO_CLIENTS) + 1):
            supplier, _ = Supplier.objects.get_or_create(
                tenant=tenant, rut=_demo_rut(i), defaults={"name": name, "category": category},
            )
            suppliers.append(supplier)
        self.stdout.write(self.style.SUCCESS(f"Suppliers: {len(suppliers)}"))

        # -- Project & cost center
        today = timezone.localdate()
        project, _ = Project.objects.get_or_create(
            tenant=tenant, name="Edificio Costanera",
            defaults={"client": clients[0], "budget": Decimal("250000000"),
                      "start_date": today - timedelta(days=days), "progress": 35},
        )
        cost_center, _ = CostCenter.objects.get_or_create(
            tenant=tenant, code="CC-100", defaults={"name": "Obra gruesa"},
        )
        cost_center.projects.add(project)

        # -- Invoices
        if Invoice.objects.filter(tenant=tenant).exists():
            self.stdout.write(self.style.WARNING("Invoices already present; skipping invoice seed."))
            return

        folio = 1000
        issued = []
        for _ in range(num_invoices):
            folio += 1
            issued.append(issue_invoice(tenant, {
                "number": str(folio),
                "date": today - timedelta(days=random.randint(10, days)),
                "type": InvoiceType.SALE,
                "client": random.choice(clients),
                "project": project,
                "cost_center": cost_center,
                "net_amount": Decimal(random.randrange(100_000, 5_000_000, 1_000)),
            }, user=owner))

        # a few chains: credit note cancelling a sale, then a replacement invoice
        chains = 0
        for original in random.sample(issued, k=min(3, len(issued))):
            folio += 1
            note = issue_invoice(tenant, {
                "number": f"NC-{folio}",
                "date": original.date + timedelta(days=2),
                "type": InvoiceType.CREDIT_NOTE,
                "client": original.client,
                "net_amount": original.net_amount,
                "related_invoice": original,
            }, user=owner)
            folio += 1
            issue_invoice(tenant, {
                "number": str(folio),
                "date": note.date + timedelta(days=1),
                "type": InvoiceType.SALE,
                "client": original.client,
                "project": project,
                "net_amount": original.net_amount,
                "related_invoice": note,
            }, user=owner)
            chains += 1

        # purchases: an approved order per supplier, invoiced against it
        for supplier in suppliers:
            po = save_purchase_order(tenant, {
                "supplier": supplier,
                "project": project,
                "date": today - timedelta(days=random.randint(20, days)),
                "items": [
                    {"description": "Suministro de obra", "quantity": Decimal(random.randint(1, 20)),
                     "unit_price": Decimal(random.randrange(10_000, 500_000, 1_000))},
                ],
            }, user=owner)
            approve_purchase_order(po)
            folio += 1
            issue_invoice(tenant, {
                "number": f"FC-{folio}",
                "date": po.date + timedelta(days=5),
                "type": InvoiceType.PURCHASE,
                "supplier": supplier,
                "purchase_order": po,
                "project": project,
                "cost_center": cost_center,
                "net_amount": po.net_amount,
            }, user=owner)

        # an orphan credit note (no reference)
        folio += 1
        issue_invoice(tenant, {
            "number": f"NC-{folio}",
            "date": today - timedelta(days=3),
            "type": InvoiceType.CREDIT_NOTE,
            "client": clients[-1],
            "net_amount": Decimal("50000"),
        }, user=owner)

        paid = 0
        for inv in Invoice.objects.filter(tenant=tenant, type=InvoiceType.SALE, status=InvoiceStatus.ISSUED):
            if random.random() < 0.4:
                inv.status = InvoiceStatus.PAID
                inv.is_paid = True
                inv.save(update_fields=["status", "is_paid", "updated_at"])
                paid += 1

        self.stdout.write(self.style.SUCCESS(
            f"Invoices: {Invoice.objects.filter(tenant=tenant).count()} ({chains} chains, {paid} paid)"
        ))
