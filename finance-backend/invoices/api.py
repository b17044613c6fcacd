# invoices/api.py
import csv
import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.api_mixins import IsInTenant
from common.permissions import CanManageInvoices, HasSectionAccess
from tenants.models import Tenant
from .models import Invoice
from .serializers import ChainMemberSerializer, InvoiceSerializer, InvoiceWriteSerializer
from .services.chains import select_roots
from .services.documents import issue_invoice, remove_invoice, update_invoice
from .services.listing import (
    InvoiceQuery,
    company_snapshot,
    filter_invoices,
    parse_ordering,
    sort_rows,
    summarize,
)
from .services.pdf import invoice_pdf_filename, render_invoice_pdf

logger = logging.getLogger(__name__)


def _resolve_request_tenant(request):
    """
    Resolve tenant in this priority:
    1) request.tenant (set by TenantContextMiddleware from the JWT claim or headers)
    2) JWT payload on request.auth -> tenant_id
    """
    t = getattr(request, "tenant", None)
    if t:
        return t

    token_payload = getattr(request, "auth", None)
    if token_payload is not None and hasattr(token_payload, "get") and token_payload.get("tenant_id"):
        return get_object_or_404(Tenant, id=token_payload["tenant_id"])

    return None


def _require_tenant(request):
    tenant = _resolve_request_tenant(request)
    if tenant is None:
        raise ValidationError({"tenant": "No active company for this request."})
    return tenant


def _invoice_qs(tenant):
    return (
        Invoice.objects.filter(tenant=tenant)
        .select_related("tenant", "client", "supplier", "purchase_order", "project", "cost_center")
        .prefetch_related("items")
    )


class InvoiceListCreateView(APIView):
    """
    GET  /api/v1/invoices/   grouped list: matched invoices folded into their chains
    POST /api/v1/invoices/   issue a document
    """
    permission_classes = [IsAuthenticated, IsInTenant, CanManageInvoices, HasSectionAccess]
    permission_resource = "invoices"

    def get(self, request):
        tenant = _require_tenant(request)
        query = InvoiceQuery.from_params(request.query_params)
        try:
            parse_ordering(query.ordering)
        except ValueError as e:
            raise ValidationError({"ordering": str(e)})

        matched = list(filter_invoices(_invoice_qs(tenant), query).order_by("date", "id"))
        by_id, chains = company_snapshot(tenant)
        rows = sort_rows(select_roots(chains, [inv.pk for inv in matched]), query.ordering)

        results = [
            {
                "invoice": InvoiceSerializer(by_id[row.invoice.id]).data,
                "children": ChainMemberSerializer(row.children, many=True).data,
            }
            for row in rows
        ]
        return Response({
            "count": len(results),
            "results": results,
            "stats": summarize(matched),
            "currency": tenant.currency_code,
        })

    def post(self, request):
        tenant = _require_tenant(request)
        ser = InvoiceWriteSerializer(data=request.data, context={"request": request, "tenant": tenant})
        ser.is_valid(raise_exception=True)
        invoice = issue_invoice(tenant, ser.validated_data, user=request.user)
        invoice = _invoice_qs(tenant).get(pk=invoice.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class InvoiceDetailView(APIView):
    permission_classes = [IsAuthenticated, IsInTenant, CanManageInvoices, HasSectionAccess]
    permission_resource = "invoices"

    def get(self, request, pk):
        tenant = _require_tenant(request)
        invoice = get_object_or_404(_invoice_qs(tenant), pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def put(self, request, pk):
        tenant = _require_tenant(request)
        invoice = get_object_or_404(_invoice_qs(tenant), pk=pk)
        ser = InvoiceWriteSerializer(invoice, data=request.data, context={"request": request, "tenant": tenant})
        ser.is_valid(raise_exception=True)
        update_invoice(invoice, ser.validated_data)
        invoice = _invoice_qs(tenant).get(pk=pk)
        return Response(InvoiceSerializer(invoice).data)

    def delete(self, request, pk):
        tenant = _require_tenant(request)
        invoice = get_object_or_404(Invoice, pk=pk, tenant=tenant)
        _, chains = company_snapshot(tenant)
        outcome = remove_invoice(invoice, chain_size=len(chains.cluster(invoice.pk)))
        if outcome == "deleted":
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response({"id": pk, "status": invoice.status, "detail": "Invoice is part of a chain; it was cancelled."})


class InvoiceChainView(APIView):
    """GET /api/v1/invoices/<id>/chain: every linked document, oldest first."""
    permission_classes = [IsAuthenticated, IsInTenant, CanManageInvoices, HasSectionAccess]
    permission_resource = "invoices"

    def get(self, request, pk):
        tenant = _require_tenant(request)
        by_id, chains = company_snapshot(tenant)
        if pk not in chains:
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        members = chains.cluster(pk)
        return Response({
            "master_id": members[0].id,
            "count": len(members),
            "results": InvoiceSerializer([by_id[m.id] for m in members], many=True).data,
        })


class InvoicePDFView(APIView):
    permission_classes = [IsAuthenticated, IsInTenant, CanManageInvoices, HasSectionAccess]
    permission_resource = "invoices"

    def get(self, request, pk):
        tenant = _require_tenant(request)
        invoice = get_object_or_404(_invoice_qs(tenant), pk=pk)
        _, chains = company_snapshot(tenant)
        try:
            pdf = render_invoice_pdf(invoice, chain=chains.cluster(invoice.pk))
        except Exception:
            logger.exception(f"PDF generation failed for invoice {invoice.pk}")
            return Response({"detail": "Could not generate the PDF."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        response = HttpResponse(pdf, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{invoice_pdf_filename(invoice)}"'
        return response


class InvoiceExportView(APIView):
    """Flat CSV of the invoices matching the list filters."""
    permission_classes = [IsAuthenticated, IsInTenant, CanManageInvoices, HasSectionAccess]
    permission_resource = "invoices"

    def get(self, request):
        tenant = _require_tenant(request)
        query = InvoiceQuery.from_params(request.query_params)
        qs = filter_invoices(_invoice_qs(tenant), query).order_by("date", "id")

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="invoices_export.csv"'
        writer = csv.writer(response)
        writer.writerow(["ID", "Folio", "Date", "Type", "Status", "Counterparty", "RUT",
                         "Net", "IVA", "Total", "Paid", "Related invoice", "Purchase order"])
        for inv in qs:
            writer.writerow([
                inv.id,
                inv.number,
                inv.date.isoformat(),
                inv.type,
                inv.status,
                inv.counterparty_name,
                inv.counterparty_rut,
                inv.net_amount,
                inv.tax_amount,
                inv.total_amount,
                "yes" if inv.is_paid else "no",
                inv.related_invoice_id or "",
                inv.purchase_order.number if inv.purchase_order_id else "",
            ])
        return response
