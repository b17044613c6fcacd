from decimal import Decimal
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clients', '0001_initial'),
        ('projects', '0001_initial'),
        ('tenants', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('number', models.CharField(db_index=True, help_text='Folio', max_length=40)),
                ('date', models.DateField(db_index=True)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('type', models.CharField(choices=[('SALE', 'Sale'), ('PURCHASE', 'Purchase'), ('CREDIT_NOTE', 'Credit note'), ('DEBIT_NOTE', 'Debit note'), ('DISPATCH_GUIDE', 'Dispatch guide')], db_index=True, default='SALE', max_length=20)),
                ('status', models.CharField(choices=[('ISSUED', 'Issued'), ('PAID', 'Paid'), ('CANCELLED', 'Cancelled')], db_index=True, default='ISSUED', max_length=16)),
                ('emission_type', models.CharField(choices=[('MANUAL', 'Manual'), ('ELECTRONIC', 'Electronic')], default='MANUAL', max_length=16)),
                ('purchase_order_number', models.CharField(blank=True, default='', max_length=60)),
                ('dispatch_guide_number', models.CharField(blank=True, default='', max_length=60)),
                ('net_amount', models.DecimalField(decimal_places=0, default=Decimal('0'), max_digits=14)),
                ('tax_amount', models.DecimalField(decimal_places=0, default=Decimal('0'), help_text='IVA', max_digits=14)),
                ('total_amount', models.DecimalField(decimal_places=0, default=Decimal('0'), max_digits=14)),
                ('is_paid', models.BooleanField(default=False)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='clients.client')),
                ('cost_center', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='projects.costcenter')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='projects.project')),
                ('related_invoice', models.ForeignKey(blank=True, help_text='Document this one amends (credit/debit note) or replaces (re-invoicing)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='amendments', to='invoices.invoice')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='invoices', to='tenants.tenant')),
            ],
            options={
                'ordering': ['-date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='InvoiceItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(max_length=255)),
                ('quantity', models.DecimalField(decimal_places=2, default=Decimal('1'), max_digits=12)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14)),
                ('total', models.DecimalField(decimal_places=0, default=Decimal('0'), max_digits=14)),
                ('invoice', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='invoices.invoice')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.AddIndex(
            model_name='invoice',
            index=models.Index(fields=['tenant', 'date'], name='invoice_tenant_date_idx'),
        ),
        migrations.AddIndex(
            model_name='invoice',
            index=models.Index(fields=['tenant', 'type', 'status'], name='invoice_tenant_type_status_idx'),
        ),
        migrations.AddIndex(
            model_name='invoice',
            index=models.Index(fields=['tenant', 'number'], name='invoice_tenant_number_idx'),
        ),
    ]
